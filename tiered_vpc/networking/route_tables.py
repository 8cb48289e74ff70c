"""
Route table classification.

Route tables are typed by their ``SubnetType`` tag. Classification waits for the
id and tag set of every table before filtering, so membership never depends on
which tag fetch resolved first.
"""

from typing import Any, List, Mapping, Optional, Sequence

import pulumi
import pulumi_aws as aws

from ..errors import RouteTableClassificationError
from .subnets import SubnetType

SUBNET_TYPE_TAG = "SubnetType"


class ClassifiedRouteTable:
    """A route table together with its resolved id and subnet type."""

    def __init__(self, route_table: aws.ec2.RouteTable, route_table_id: str, subnet_type: SubnetType):
        self.route_table = route_table
        self.route_table_id = route_table_id
        self.subnet_type = subnet_type

    def __repr__(self) -> str:
        return f"ClassifiedRouteTable({self.route_table_id!r}, {self.subnet_type.value})"


def _classify(position: int, route_table_id: Optional[str], tags: Optional[Mapping[str, str]]) -> SubnetType:
    if route_table_id is None:
        raise RouteTableClassificationError(f"Route table #{position} has no id at classification time")
    # An untagged table resolves its tags to None
    return SubnetType.from_tag((tags or {}).get(SUBNET_TYPE_TAG))


def resolve_route_table_classes(
    route_tables: pulumi.Input[Sequence[aws.ec2.RouteTable]],
) -> pulumi.Output[List[ClassifiedRouteTable]]:
    """
    Resolve the id and subnet type of every route table.

    Args:
        route_tables: Route tables, possibly not yet resolved

    Returns:
        pulumi.Output[List[ClassifiedRouteTable]]: One record per table, in input order
    """
    def gather(tables: Sequence[aws.ec2.RouteTable]):
        tables = list(tables)
        if not tables:
            return []

        def build(resolved: List[List[Any]]) -> List[ClassifiedRouteTable]:
            return [
                ClassifiedRouteTable(table, table_id, _classify(position, table_id, tags))
                for position, (table, (table_id, tags)) in enumerate(zip(tables, resolved))
            ]

        return pulumi.Output.all(
            *[pulumi.Output.all(table.id, table.tags) for table in tables]
        ).apply(build)

    return pulumi.Output.from_input(route_tables).apply(gather)


def filter_route_tables(
    classified: pulumi.Input[Sequence[ClassifiedRouteTable]],
    subnet_type: SubnetType = SubnetType.PRIVATE,
) -> pulumi.Output[List[ClassifiedRouteTable]]:
    return pulumi.Output.from_input(classified).apply(
        lambda records: [record for record in records if record.subnet_type is subnet_type]
    )


def classify_route_tables(
    route_tables: pulumi.Input[Sequence[aws.ec2.RouteTable]],
    subnet_type: SubnetType = SubnetType.PRIVATE,
) -> pulumi.Output[List[aws.ec2.RouteTable]]:
    """
    Select the route tables of one subnet type.

    Args:
        route_tables: Route tables, possibly not yet resolved
        subnet_type: Subnet type to keep (default: Private)

    Returns:
        pulumi.Output[List[aws.ec2.RouteTable]]: Matching tables, in input order
    """
    return filter_route_tables(resolve_route_table_classes(route_tables), subnet_type).apply(
        lambda records: [record.route_table for record in records]
    )


def _route_table_ref_id(ref: Any) -> pulumi.Input[str]:
    if isinstance(ref, ClassifiedRouteTable):
        return ref.route_table_id
    if isinstance(ref, pulumi.CustomResource):
        return ref.id
    if isinstance(ref, Mapping):
        if not ref.get("id"):
            raise ValueError(f"Route table reference has no id: {ref!r}")
        return ref["id"]
    if isinstance(ref, str) and ref:
        return ref
    raise TypeError(f"Unsupported route table reference: {ref!r}")


def resolve_route_table_ids(route_tables: pulumi.Input[Sequence[Any]]) -> pulumi.Output[List[str]]:
    """
    Resolve route table references to a list of unique ids.

    References may be id strings, mappings with an ``id`` key (stack reference
    outputs), RouteTable resources or ClassifiedRouteTable records. The first
    occurrence of an id wins; later duplicates are dropped.
    """
    def gather(refs: Sequence[Any]):
        refs = list(refs or [])
        if not refs:
            return []
        return pulumi.Output.all(*[_route_table_ref_id(ref) for ref in refs]).apply(
            lambda ids: list(dict.fromkeys(ids))
        )

    return pulumi.Output.from_input(route_tables).apply(gather)
