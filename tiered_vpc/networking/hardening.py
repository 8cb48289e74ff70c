from typing import Dict, NamedTuple, Optional

import pulumi
import pulumi_aws as aws

from ..utils.tags import join_name, merge_tags


class DefaultPosture(NamedTuple):
    route_table: aws.ec2.DefaultRouteTable
    security_group: aws.ec2.DefaultSecurityGroup


def harden_default_posture(
    base_name: str,
    vpc: aws.ec2.Vpc,
    tags: Optional[Dict[str, str]] = None,
    parent: Optional[pulumi.Resource] = None,
) -> DefaultPosture:
    """
    Take over the VPC's default route table and default security group.

    The default route table is left with no routes and the default security
    group with no ingress or egress rules. Both are full overwrites, so applying
    them again with the same state changes nothing.

    Args:
        base_name: Naming prefix of the network
        vpc: The VPC whose defaults are adopted
        tags: Optional base tags
        parent: Optional parent resource

    Returns:
        DefaultPosture: The adopted default route table and security group
    """
    route_table = aws.ec2.DefaultRouteTable(
        join_name(base_name, "default-rt"),
        default_route_table_id=vpc.default_route_table_id,
        routes=[],
        tags=merge_tags(tags or {}, {"Name": join_name(base_name, "default")}),
        opts=pulumi.ResourceOptions(parent=parent),
    )

    security_group = aws.ec2.DefaultSecurityGroup(
        join_name(base_name, "default-sg"),
        vpc_id=vpc.id,
        ingress=[],
        egress=[],
        tags=merge_tags(tags or {}, {"Name": join_name(base_name, "default")}),
        opts=pulumi.ResourceOptions(parent=parent),
    )

    return DefaultPosture(route_table=route_table, security_group=security_group)
