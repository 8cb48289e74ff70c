"""
Peered Tiered VPC

This program demonstrates how to:
1. Build a tiered VPC (public, private app, private data and isolated data subnets)
2. Attach gateway and interface endpoints for AWS services
3. Peer the VPC with a bootstrap VPC managed in another stack

Everything is driven by the stack configuration, for example:

    pulumi config set namespace acme
    pulumi config set environment dev
    pulumi config set name core
    pulumi config set cidr 10.129.0.0/16
    pulumi config set privateAppSubnets true
    pulumi config set isolatedDataSubnets true
    pulumi config set --path 'interfaceEndpoints[0]' kms
    pulumi config set peerStack acme/bootstrap/dev

The peer stack must export ``vpcId``, ``vpcCidr`` and ``privateRouteTables``;
a stack running this program exports the same names, so one can peer with another.
"""

import pulumi
import pulumi_aws as aws
from tiered_vpc.config import load_settings
from tiered_vpc.networking import TieredVpc, TieredVpcArgs

settings = load_settings()

# Region is passed to the component to build endpoint service names
region = aws.get_region().name

# Peer VPC details come from the bootstrap stack
peer_vpc_id = peer_vpc_cidr = peer_route_tables = None
if settings.peer_stack:
    peer = pulumi.StackReference(settings.peer_stack)
    peer_vpc_id = peer.require_output("vpcId")
    peer_vpc_cidr = peer.require_output("vpcCidr")
    peer_route_tables = peer.get_output("privateRouteTables").apply(lambda tables: tables or [])

vpc = TieredVpc(
    "vpc",
    TieredVpcArgs(
        namespace=settings.namespace,
        environment=settings.environment,
        name=settings.name,
        region=region,
        cidr=settings.cidr,
        public_subnets=settings.public_subnets,
        private_app_subnets=settings.private_app_subnets,
        private_data_subnets=settings.private_data_subnets,
        isolated_data_subnets=settings.isolated_data_subnets,
        # See https://docs.aws.amazon.com/vpc/latest/privatelink/aws-services-privatelink-support.html
        interface_endpoints=settings.interface_endpoints,
        availability_zones=settings.availability_zones,
        peer_vpc_id=peer_vpc_id,
        peer_vpc_cidr=peer_vpc_cidr,
        peer_route_tables=peer_route_tables,
        verify_endpoint_services=settings.verify_endpoint_services,
    ),
)

pulumi.export("vpcId", vpc.vpc_id)
pulumi.export("vpcCidr", vpc.cidr_block)
pulumi.export("publicSubnetIds", vpc.public_subnet_ids)
pulumi.export("privateSubnetIds", vpc.private_subnet_ids)
pulumi.export("isolatedSubnetIds", vpc.isolated_subnet_ids)
pulumi.export("routeTableIds", vpc.route_table_ids)
pulumi.export("privateRouteTableIds", vpc.private_route_table_ids)
pulumi.export("privateRouteTables", vpc.private_route_table_ids)
pulumi.export("natStrategy", vpc.nat_strategy.value)
pulumi.export("peeringConnectionId", vpc.peering_connection_id)
