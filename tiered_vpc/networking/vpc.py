import pulumi
import pulumi_aws as aws
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..errors import ConfigurationError, EndpointAttachmentError
from ..utils.tags import get_default_tags, join_name, merge_tags
from .endpoints import create_endpoint_security_group, create_gateway_endpoints, create_interface_endpoints
from .hardening import harden_default_posture
from .peering import PeeringEstablisher
from .route_tables import SUBNET_TYPE_TAG, filter_route_tables, resolve_route_table_classes
from .subnets import (
    AZ_COUNT,
    NatStrategy,
    SubnetTierSpec,
    SubnetType,
    TierKind,
    allocate_subnet_cidrs,
    derive_subnet_plan,
    plan_nat_strategy,
)

COMPONENT_TYPE = "tiered-vpc:aws:vpc"

def get_availability_zones(count: int = AZ_COUNT) -> List[str]:
    """
    Get the first availability zones of the current region.

    Args:
        count: Number of zones required

    Returns:
        List[str]: List of availability zone names
    """
    zones = aws.get_availability_zones(state="available")
    names = list(zones.names or [])
    if len(names) < count:
        raise ConfigurationError(f"Region offers {len(names)} availability zones, {count} are required")
    return names[:count]

class NetworkAllocation:
    """
    Resources created for a VPC and its subnet tiers.

    Subnets and route tables are kept per tier, indexed by zone. Route tables
    are listed in plan order, then zone order.
    """

    def __init__(self, vpc: aws.ec2.Vpc):
        self.vpc = vpc
        self.subnets: Dict[TierKind, List[aws.ec2.Subnet]] = {}
        self.route_tables: Dict[TierKind, List[aws.ec2.RouteTable]] = {}
        self.internet_gateway: Optional[aws.ec2.InternetGateway] = None
        self.nat_gateway: Optional[aws.ec2.NatGateway] = None

    def subnet_ids(self, *kinds: TierKind) -> pulumi.Output[List[str]]:
        subnets = [subnet for kind in kinds for subnet in self.subnets.get(kind, [])]
        return pulumi.Output.all(*[subnet.id for subnet in subnets]) if subnets else pulumi.Output.from_input([])

    def all_route_tables(self) -> List[aws.ec2.RouteTable]:
        return [table for tables in self.route_tables.values() for table in tables]

def allocate_network(
    base_name: str,
    cidr_block: str,
    plan: Iterable[SubnetTierSpec],
    availability_zones: Sequence[str],
    nat_strategy: NatStrategy = NatStrategy.NONE,
    tags: Optional[Dict[str, str]] = None,
    parent: Optional[pulumi.Resource] = None,
) -> NetworkAllocation:
    """
    Create a VPC with one subnet, route table and association per tier per zone.

    Args:
        base_name: Naming prefix of the network
        cidr_block: CIDR block for the VPC
        plan: Subnet plan; subnets and route tables are reported in this order
        availability_zones: Zone names; subnet index i lives in zone i
        nat_strategy: Whether private tiers route out through a shared NAT gateway
        tags: Optional dictionary of tags
        parent: Optional parent resource

    Returns:
        NetworkAllocation: The created resources
    """
    tags = tags or {}
    plan = list(plan)
    kinds = [spec.kind for spec in plan]
    if nat_strategy is NatStrategy.SHARED and TierKind.PUBLIC not in kinds:
        raise ConfigurationError("A shared NAT gateway needs the public subnet tier")
    cidrs = allocate_subnet_cidrs(cidr_block, plan, len(availability_zones))

    vpc = aws.ec2.Vpc(
        base_name,
        cidr_block=cidr_block,
        enable_dns_hostnames=True,
        enable_dns_support=True,
        tags=tags,
        opts=pulumi.ResourceOptions(parent=parent),
    )
    network = NetworkAllocation(vpc)
    child = pulumi.ResourceOptions(parent=vpc)

    # Keyed in plan order; tiers are filled public first below
    for kind in kinds:
        network.subnets[kind] = []
        network.route_tables[kind] = []

    if TierKind.PUBLIC in kinds:
        network.internet_gateway = aws.ec2.InternetGateway(
            f"{base_name}-igw",
            vpc_id=vpc.id,
            tags=merge_tags(tags, {"Name": join_name(base_name, "igw")}),
            opts=child,
        )

    # The NAT gateway lives in the first public subnet and must exist before private routes target it
    for spec in sorted(plan, key=lambda spec: spec.kind is not TierKind.PUBLIC):
        subnets, route_tables = network.subnets[spec.kind], network.route_tables[spec.kind]
        for zone, (az, subnet_cidr) in enumerate(zip(availability_zones, cidrs[spec.kind])):
            label = f"{spec.label}-{zone + 1}"
            tier_tags = merge_tags(tags, {
                **spec.tags,
                "Name": join_name(base_name, label),
                SUBNET_TYPE_TAG: spec.subnet_type.value,
            })

            subnet = aws.ec2.Subnet(
                f"{base_name}-{label}",
                vpc_id=vpc.id,
                cidr_block=subnet_cidr,
                availability_zone=az,
                map_public_ip_on_launch=spec.subnet_type is SubnetType.PUBLIC,
                tags=tier_tags,
                opts=child,
            )
            route_table = aws.ec2.RouteTable(
                f"{base_name}-{label}-rt",
                vpc_id=vpc.id,
                tags=tier_tags,
                opts=child,
            )
            aws.ec2.RouteTableAssociation(
                f"{base_name}-{label}-rt-association",
                subnet_id=subnet.id,
                route_table_id=route_table.id,
                opts=pulumi.ResourceOptions(parent=route_table),
            )

            if spec.subnet_type is SubnetType.PUBLIC:
                aws.ec2.Route(
                    f"{base_name}-{label}-default",
                    route_table_id=route_table.id,
                    destination_cidr_block="0.0.0.0/0",
                    gateway_id=network.internet_gateway.id,
                    opts=pulumi.ResourceOptions(parent=route_table),
                )
                if nat_strategy is NatStrategy.SHARED and network.nat_gateway is None:
                    eip = aws.ec2.Eip(
                        f"{base_name}-nat-eip",
                        domain="vpc",
                        tags=merge_tags(tags, {"Name": join_name(base_name, "nat")}),
                        opts=child,
                    )
                    network.nat_gateway = aws.ec2.NatGateway(
                        f"{base_name}-nat",
                        allocation_id=eip.allocation_id,
                        subnet_id=subnet.id,
                        tags=merge_tags(tags, {"Name": join_name(base_name, "nat")}),
                        opts=pulumi.ResourceOptions(parent=vpc, depends_on=[network.internet_gateway]),
                    )
            elif spec.subnet_type is SubnetType.PRIVATE and network.nat_gateway is not None:
                aws.ec2.Route(
                    f"{base_name}-{label}-default",
                    route_table_id=route_table.id,
                    destination_cidr_block="0.0.0.0/0",
                    nat_gateway_id=network.nat_gateway.id,
                    opts=pulumi.ResourceOptions(parent=route_table),
                )

            subnets.append(subnet)
            route_tables.append(route_table)

    return network

class TieredVpcArgs:
    def __init__(
        self,
        namespace: str,
        environment: str,
        name: str,
        region: str,
        cidr: str,
        public_subnets: bool = False,
        private_app_subnets: bool = False,
        private_data_subnets: bool = False,
        isolated_data_subnets: bool = False,
        interface_endpoints: Optional[Sequence[str]] = None,
        availability_zones: Optional[Sequence[str]] = None,
        peer_vpc_id: Optional[pulumi.Input[str]] = None,
        peer_vpc_cidr: Optional[pulumi.Input[str]] = None,
        peer_route_tables: Optional[pulumi.Input[Sequence[Any]]] = None,
        verify_endpoint_services: bool = False,
    ):
        self.namespace = namespace
        self.environment = environment
        self.name = name
        self.region = region
        self.cidr = cidr
        self.public_subnets = public_subnets
        self.private_app_subnets = private_app_subnets
        self.private_data_subnets = private_data_subnets
        self.isolated_data_subnets = isolated_data_subnets
        self.interface_endpoints = list(interface_endpoints or [])
        self.availability_zones = list(availability_zones) if availability_zones else None
        self.peer_vpc_id = peer_vpc_id
        self.peer_vpc_cidr = peer_vpc_cidr
        self.peer_route_tables = peer_route_tables
        self.verify_endpoint_services = verify_endpoint_services

class TieredVpc(pulumi.ComponentResource):
    """
    A VPC with public, private and isolated subnet tiers across three zones.

    Besides the tiers, the component attaches DynamoDB and S3 gateway endpoints
    to every route table, places interface endpoints in the isolated tier,
    empties the default route table and security group, and optionally peers
    with another VPC.

    Outputs:
        vpc_id: ID of the VPC
        public_subnet_ids, private_subnet_ids, isolated_subnet_ids: Subnet IDs,
            tier by tier in plan order, zone by zone within a tier
        route_tables: Every subnet route table
        private_route_tables: The route tables tagged ``SubnetType=Private``
    """

    def __init__(self, name: str, args: TieredVpcArgs, opts: Optional[pulumi.ResourceOptions] = None):
        super().__init__(COMPONENT_TYPE, name, None, opts)

        self.namespace = args.namespace
        self.environment = args.environment
        self.name = args.name
        self.base_name = join_name(args.namespace, args.environment, args.name)
        tags = get_default_tags(args.namespace, args.environment, args.name)
        self.tags = tags

        # Plan
        self.plan = derive_subnet_plan(
            public=args.public_subnets,
            private_app=args.private_app_subnets,
            private_data=args.private_data_subnets,
            isolated_data=args.isolated_data_subnets,
            tags=tags,
        )
        self.nat_strategy = plan_nat_strategy(self.plan)
        pulumi.log.info(
            f"Subnet plan: [{', '.join(spec.label for spec in self.plan)}], NAT strategy: {self.nat_strategy.value}",
            resource=self,
        )

        if args.interface_endpoints and not args.isolated_data_subnets:
            raise ConfigurationError("Interface endpoints require the isolated data subnet tier")

        # Network
        zones = args.availability_zones or get_availability_zones(AZ_COUNT)
        if len(zones) != AZ_COUNT:
            raise ConfigurationError(f"Exactly {AZ_COUNT} availability zones are required, got {len(zones)}")
        self.availability_zones = zones

        self.network = allocate_network(
            self.base_name,
            args.cidr,
            self.plan,
            zones,
            nat_strategy=self.nat_strategy,
            tags=tags,
            parent=self,
        )
        self.vpc = self.network.vpc
        self.vpc_id = self.vpc.id
        self.cidr_block = self.vpc.cidr_block
        self.public_subnet_ids = self.network.subnet_ids(TierKind.PUBLIC)
        self.private_subnet_ids = self.network.subnet_ids(TierKind.PRIVATE_APP, TierKind.PRIVATE_DATA)
        self.isolated_subnet_ids = self.network.subnet_ids(TierKind.ISOLATED)

        # Route tables
        self.route_tables = pulumi.Output.from_input(self.network.all_route_tables())
        self.classified_route_tables = resolve_route_table_classes(self.route_tables)
        self.private_classified_route_tables = filter_route_tables(self.classified_route_tables, SubnetType.PRIVATE)
        self.private_route_tables = self.private_classified_route_tables.apply(
            lambda records: [record.route_table for record in records]
        )
        self.route_table_ids = self.classified_route_tables.apply(
            lambda records: [record.route_table_id for record in records]
        )
        self.private_route_table_ids = self.private_classified_route_tables.apply(
            lambda records: [record.route_table_id for record in records]
        )

        # Endpoints
        self.gateway_endpoints = create_gateway_endpoints(
            self.base_name, self.vpc_id, args.region, self.route_table_ids, tags=tags, parent=self,
        )
        self.endpoint_security_group = None
        self.interface_endpoints = []
        if args.interface_endpoints:
            self.endpoint_security_group = create_endpoint_security_group(
                self.base_name, self.vpc_id, tags=tags, parent=self,
            )
            self.interface_endpoints = create_interface_endpoints(
                self.base_name,
                self.vpc_id,
                args.region,
                args.interface_endpoints,
                subnet_ids=self.isolated_subnet_ids,
                security_group_id=self.endpoint_security_group.id,
                tags=tags,
                parent=self,
                verify_services=args.verify_endpoint_services,
            )

        # Default posture
        self.default_posture = harden_default_posture(self.base_name, self.vpc, tags=tags, parent=self)

        # Peering
        self.peering = PeeringEstablisher(
            args.name,
            vpc_id=self.vpc_id,
            local_cidr=args.cidr,
            local_route_tables=self.private_classified_route_tables,
            peer_vpc_id=args.peer_vpc_id,
            peer_cidr=args.peer_vpc_cidr,
            peer_route_tables=args.peer_route_tables,
            base_name=self.base_name,
            tags=tags,
            parent=self,
        )
        self.peering_connection_id = self.peering.connection.id if self.peering.connection else None

        self.register_outputs({
            "vpcId": self.vpc_id,
            "publicSubnetIds": self.public_subnet_ids,
            "privateSubnetIds": self.private_subnet_ids,
            "isolatedSubnetIds": self.isolated_subnet_ids,
            "routeTableIds": self.route_table_ids,
            "privateRouteTableIds": self.private_route_table_ids,
        })

        failures = [result for result in self.interface_endpoints if not result.ok]
        if failures:
            raise EndpointAttachmentError(failures)
