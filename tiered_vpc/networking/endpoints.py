"""
Managed service endpoints.

Gateway endpoints (DynamoDB and S3) are attached to every route table of the
network. Interface endpoints are placed in the isolated subnets behind one shared
security group.

The shared security group allows all ingress and egress. That is acceptable only
because isolated subnets have no route out of the network; it is a gap in
defense in depth, not a perimeter.
"""

import re
from typing import Dict, List, Optional, Sequence

import pulumi
import pulumi_aws as aws

from ..ec2.security_groups import ALLOW_ALL, create_security_group
from ..utils.tags import join_name, merge_tags

GATEWAY_SERVICES = ("dynamodb", "s3")

_SERVICE_NAME = re.compile(r"^[a-z0-9][a-z0-9.-]*$")


class EndpointResult:
    """Outcome of one endpoint request: either an endpoint or the error it raised."""

    def __init__(self, service: str, endpoint: Optional[aws.ec2.VpcEndpoint] = None, error: Optional[Exception] = None):
        self.service = service
        self.endpoint = endpoint
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        state = "ok" if self.ok else f"error={self.error!r}"
        return f"EndpointResult({self.service!r}, {state})"


def service_name(region: str, service: str) -> str:
    """Expand a short service name (``s3``) to its regional endpoint service name."""
    if "." in service:
        return service
    return f"com.amazonaws.{region}.{service}"


def create_gateway_endpoints(
    base_name: str,
    vpc_id: pulumi.Input[str],
    region: str,
    route_table_ids: pulumi.Input[Sequence[str]],
    tags: Optional[Dict[str, str]] = None,
    parent: Optional[pulumi.Resource] = None,
) -> Dict[str, aws.ec2.VpcEndpoint]:
    """
    Create the DynamoDB and S3 gateway endpoints.

    Args:
        base_name: Naming prefix of the network
        vpc_id: ID of the VPC
        region: AWS region of the VPC
        route_table_ids: IDs of every route table in the VPC
        tags: Optional base tags
        parent: Optional parent resource

    Returns:
        Dict[str, aws.ec2.VpcEndpoint]: Endpoints keyed by service
    """
    endpoints = {}
    for service in GATEWAY_SERVICES:
        endpoints[service] = aws.ec2.VpcEndpoint(
            join_name(base_name, service),
            vpc_id=vpc_id,
            service_name=service_name(region, service),
            vpc_endpoint_type="Gateway",
            route_table_ids=route_table_ids,
            tags=merge_tags(tags or {}, {"Name": join_name(base_name, service)}),
            opts=pulumi.ResourceOptions(parent=parent),
        )
    return endpoints


def create_endpoint_security_group(
    base_name: str,
    vpc_id: pulumi.Input[str],
    tags: Optional[Dict[str, str]] = None,
    parent: Optional[pulumi.Resource] = None,
) -> aws.ec2.SecurityGroup:
    """Create the permissive security group shared by all interface endpoints."""
    sg_name = join_name(base_name, "vpce", "sg")
    return create_security_group(
        name=sg_name,
        vpc_id=vpc_id,
        description="Allow local traffic",
        ingress_rules=[ALLOW_ALL],
        egress_rules=[ALLOW_ALL],
        tags=merge_tags(tags or {}, {"Name": sg_name}),
        opts=pulumi.ResourceOptions(parent=parent),
    )


def _check_interface_service(region: str, service: str, verify: bool, parent: Optional[pulumi.Resource]) -> str:
    if not _SERVICE_NAME.match(service):
        raise ValueError(f"Invalid endpoint service name {service!r}")

    name = service_name(region, service)
    if verify:
        found = aws.ec2.get_vpc_endpoint_service(
            service_name=name,
            opts=pulumi.InvokeOptions(parent=parent),
        )
        if found.service_type != "Interface":
            raise ValueError(f"{name} is not offered as an Interface endpoint in {region}")
    return name


def create_interface_endpoints(
    base_name: str,
    vpc_id: pulumi.Input[str],
    region: str,
    services: Sequence[str],
    subnet_ids: pulumi.Input[Sequence[str]],
    security_group_id: pulumi.Input[str],
    tags: Optional[Dict[str, str]] = None,
    parent: Optional[pulumi.Resource] = None,
    verify_services: bool = False,
) -> List[EndpointResult]:
    """
    Create one interface endpoint per service, best effort.

    Every service is attempted even when an earlier one fails. The caller is
    responsible for removing duplicate service names.

    Args:
        base_name: Naming prefix of the network
        vpc_id: ID of the VPC
        region: AWS region of the VPC
        services: Short or fully-qualified service names
        subnet_ids: IDs of the isolated subnets
        security_group_id: ID of the shared endpoint security group
        tags: Optional base tags
        parent: Optional parent resource
        verify_services: Look each service up in the region before creating it

    Returns:
        List[EndpointResult]: One result per requested service, in request order
    """
    results = []
    for service in services:
        try:
            endpoint = aws.ec2.VpcEndpoint(
                join_name(base_name, service),
                vpc_id=vpc_id,
                service_name=_check_interface_service(region, service, verify_services, parent),
                vpc_endpoint_type="Interface",
                security_group_ids=[security_group_id],
                subnet_ids=subnet_ids,
                private_dns_enabled=True,
                tags=merge_tags(tags or {}, {"Name": join_name(base_name, service)}),
                opts=pulumi.ResourceOptions(parent=parent),
            )
        except Exception as e:
            pulumi.log.warn(f"Interface endpoint {service} failed: {e}", resource=parent)
            results.append(EndpointResult(service, error=e))
        else:
            results.append(EndpointResult(service, endpoint=endpoint))
    return results
