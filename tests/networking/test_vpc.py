import pytest
import pulumi
from tiered_vpc.errors import ConfigurationError, EndpointAttachmentError
from tiered_vpc.networking.peering import PeeringState
from tiered_vpc.networking.subnets import NatStrategy, TierKind, derive_subnet_plan
from tiered_vpc.networking.vpc import TieredVpc, TieredVpcArgs, allocate_network, get_availability_zones

AVAILABILITY_ZONES = ["us-east-1a", "us-east-1b", "us-east-1c"]

SUBNET = "aws:ec2/subnet:Subnet"
ROUTE_TABLE = "aws:ec2/routeTable:RouteTable"
ROUTE = "aws:ec2/route:Route"
NAT_GATEWAY = "aws:ec2/natGateway:NatGateway"
INTERNET_GATEWAY = "aws:ec2/internetGateway:InternetGateway"
VPC_ENDPOINT = "aws:ec2/vpcEndpoint:VpcEndpoint"
PEERING = "aws:ec2/vpcPeeringConnection:VpcPeeringConnection"

def make_args(**overrides):
    """Build component args for the acme/dev/core deployment."""
    values = dict(
        namespace="acme",
        environment="dev",
        name="core",
        region="us-east-1",
        cidr="10.129.0.0/16",
        availability_zones=AVAILABILITY_ZONES,
    )
    values.update(overrides)
    return TieredVpcArgs(**values)

def build(args):
    """Create a TieredVpc under the test engine and return it."""
    created = []

    @pulumi.runtime.test
    def run():
        vpc = TieredVpc("vpc", args)
        created.append(vpc)
        return pulumi.Output.all(vpc.private_route_tables, vpc.peering.status)

    run()
    return created[0]

def test_public_private_isolated_without_peer(mocks):
    """Test three tiers across three zones, shared NAT, gateway endpoints and no peering."""
    vpc = build(make_args(public_subnets=True, private_app_subnets=True, isolated_data_subnets=True))

    assert vpc.nat_strategy is NatStrategy.SHARED
    assert [spec.kind for spec in vpc.plan] == [TierKind.PUBLIC, TierKind.PRIVATE_APP, TierKind.ISOLATED]
    assert len(mocks.named(SUBNET)) == 9
    assert len(mocks.named(ROUTE_TABLE)) == 9
    assert mocks.named(NAT_GATEWAY) == ["acme-dev-core-nat"]
    assert mocks.named(INTERNET_GATEWAY) == ["acme-dev-core-igw"]
    assert vpc.peering.state is PeeringState.NO_PEER
    assert mocks.named(PEERING) == []

    assert sorted(mocks.named(VPC_ENDPOINT)) == ["acme-dev-core-dynamodb", "acme-dev-core-s3"]
    route_tables = [f"acme-dev-core-{label}-{zone}-rt_id"
                    for label in ("public", "private-app", "isolated-data") for zone in (1, 2, 3)]
    for service in ("dynamodb", "s3"):
        assert mocks.inputs(VPC_ENDPOINT, f"acme-dev-core-{service}")["routeTableIds"] == route_tables

    # Default routes: 3 public through the internet gateway, 3 private through NAT, none isolated
    routes = mocks.named(ROUTE)
    assert len(routes) == 6
    assert mocks.inputs(ROUTE, "acme-dev-core-private-app-2-default")["natGatewayId"] == "acme-dev-core-nat_id"
    assert mocks.inputs(ROUTE, "acme-dev-core-public-1-default")["gatewayId"] == "acme-dev-core-igw_id"
    assert not any("isolated" in route for route in routes)

def test_isolated_only_with_peer(mocks):
    """Test that an isolated-only network peers with no local routes and one remote route."""
    vpc = build(make_args(
        isolated_data_subnets=True,
        peer_vpc_id="vpc-bootstrap",
        peer_vpc_cidr="10.50.0.0/16",
        peer_route_tables=pulumi.Output.from_input([{"id": "rtb-bootstrap"}]),
    ))

    assert [spec.kind for spec in vpc.plan] == [TierKind.ISOLATED]
    assert vpc.nat_strategy is NatStrategy.NONE
    assert len(mocks.named(SUBNET)) == 3
    assert mocks.named(NAT_GATEWAY) == []
    assert mocks.named(PEERING) == ["acme-dev-core-peering"]
    assert mocks.named(ROUTE) == ["peer-rtb-bootstrap-core"]
    assert mocks.inputs(ROUTE, "peer-rtb-bootstrap-core")["destinationCidrBlock"] == "10.129.0.0/16"

def test_private_tables_get_peering_routes(mocks):
    """Test one peering route per private route table and none for other tiers."""
    vpc = build(make_args(
        public_subnets=True,
        private_app_subnets=True,
        private_data_subnets=True,
        isolated_data_subnets=True,
        peer_vpc_id="vpc-bootstrap",
        peer_vpc_cidr="10.50.0.0/16",
        peer_route_tables=["rtb-1", "rtb-2"],
    ))

    peering_routes = [route for route in mocks.named(ROUTE) if route.endswith("-peer")]
    assert sorted(peering_routes) == sorted(
        f"core-acme-dev-core-{label}-{zone}-rt_id-peer"
        for label in ("private-app", "private-data") for zone in (1, 2, 3)
    )
    for route in peering_routes:
        assert mocks.inputs(ROUTE, route)["destinationCidrBlock"] == "10.50.0.0/16"
    assert sorted(route for route in mocks.named(ROUTE) if route.startswith("peer-")) == [
        "peer-rtb-1-core", "peer-rtb-2-core",
    ]

@pulumi.runtime.test
def test_component_outputs():
    """Test subnet id ordering and the classified private route tables."""
    vpc = TieredVpc("vpc", make_args(public_subnets=True, private_app_subnets=True, private_data_subnets=True))

    def check(values):
        public_ids, private_ids, isolated_ids, private_table_ids, all_table_ids = values
        assert public_ids == [f"acme-dev-core-public-{zone}_id" for zone in (1, 2, 3)]
        assert private_ids == [f"acme-dev-core-{label}-{zone}_id"
                               for label in ("private-app", "private-data") for zone in (1, 2, 3)]
        assert isolated_ids == []
        assert private_table_ids == [f"{subnet_id[:-3]}-rt_id" for subnet_id in private_ids]
        assert len(all_table_ids) == 9

    return pulumi.Output.all(
        vpc.public_subnet_ids,
        vpc.private_subnet_ids,
        vpc.isolated_subnet_ids,
        vpc.private_route_table_ids,
        vpc.route_table_ids,
    ).apply(check)

def test_subnets_use_requested_zones_and_blocks(mocks):
    """Test zone placement, address blocks and tags of subnets."""
    build(make_args(private_data_subnets=True))

    subnet = mocks.inputs(SUBNET, "acme-dev-core-private-data-3")
    assert subnet["availabilityZone"] == "us-east-1c"
    assert subnet["cidrBlock"] == "10.129.128.0/20"
    assert subnet["mapPublicIpOnLaunch"] is False
    assert subnet["tags"]["SubnetType"] == "Private"
    assert subnet["tags"]["PrivateSubnetType"] == "Data"
    assert subnet["tags"]["Name"] == "acme-dev-core-private-data-3"

def test_empty_plan_still_hardens_defaults(mocks):
    """Test that a network with no tiers still gets gateway endpoints and hardened defaults."""
    build(make_args())

    assert mocks.named(SUBNET) == []
    assert mocks.named(ROUTE) == []
    assert mocks.inputs(VPC_ENDPOINT, "acme-dev-core-s3")["routeTableIds"] == []
    assert mocks.inputs("aws:ec2/defaultRouteTable:DefaultRouteTable", "acme-dev-core-default-rt")["routes"] == []
    default_sg = mocks.inputs("aws:ec2/defaultSecurityGroup:DefaultSecurityGroup", "acme-dev-core-default-sg")
    assert default_sg["ingress"] == []
    assert default_sg["egress"] == []

def test_interface_endpoints_in_isolated_subnets(mocks):
    """Test that interface endpoints use the isolated subnets and the shared group."""
    build(make_args(isolated_data_subnets=True, interface_endpoints=["kms", "logs"]))

    kms = mocks.inputs(VPC_ENDPOINT, "acme-dev-core-kms")
    assert kms["subnetIds"] == [f"acme-dev-core-isolated-data-{zone}_id" for zone in (1, 2, 3)]
    assert kms["securityGroupIds"] == ["acme-dev-core-vpce-sg_id"]
    assert kms["privateDnsEnabled"] is True
    assert "acme-dev-core-logs" in mocks.named(VPC_ENDPOINT)

def test_interface_endpoints_require_isolated_tier():
    """Test that interface endpoints without an isolated tier are rejected."""
    with pytest.raises(ConfigurationError):
        build(make_args(private_app_subnets=True, interface_endpoints=["kms"]))

def test_endpoint_failures_are_reported_after_the_rest_is_built(mocks):
    """Test that endpoint failures surface once, after peering and hardening were issued."""
    with pytest.raises(EndpointAttachmentError) as excinfo:
        build(make_args(
            isolated_data_subnets=True,
            interface_endpoints=["kms", "Bad Name", "sts"],
            peer_vpc_id="vpc-bootstrap",
            peer_vpc_cidr="10.50.0.0/16",
        ))

    assert [failure.service for failure in excinfo.value.failures] == ["Bad Name"]
    assert "acme-dev-core-kms" in mocks.named(VPC_ENDPOINT)
    assert "acme-dev-core-sts" in mocks.named(VPC_ENDPOINT)
    assert mocks.named(PEERING) == ["acme-dev-core-peering"]

def test_wrong_zone_count_is_rejected():
    """Test that exactly three availability zones are required."""
    with pytest.raises(ConfigurationError):
        build(make_args(availability_zones=["us-east-1a", "us-east-1b"]))

@pulumi.runtime.test
def test_get_availability_zones():
    """Test that the first three zones of the region are used."""
    assert get_availability_zones() == AVAILABILITY_ZONES

def test_private_tier_listed_before_public_still_routes_through_nat(mocks):
    """Test that plan order does not decide whether private tables get a NAT route."""
    plan = list(reversed(derive_subnet_plan(public=True, private_app=True)))
    created = []

    @pulumi.runtime.test
    def allocate():
        network = allocate_network(
            "b", "10.0.0.0/16", plan, AVAILABILITY_ZONES, nat_strategy=NatStrategy.SHARED,
        )
        created.append(network)
        return network.vpc.id

    allocate()

    network = created[0]
    assert list(network.route_tables) == [TierKind.PRIVATE_APP, TierKind.PUBLIC]
    assert mocks.named(NAT_GATEWAY) == ["b-nat"]
    nat_routes = [
        route for route in mocks.named(ROUTE)
        if mocks.inputs(ROUTE, route).get("natGatewayId") == "b-nat_id"
    ]
    assert sorted(nat_routes) == [f"b-private-app-{zone}-default" for zone in (1, 2, 3)]

def test_shared_nat_requires_public_tier():
    """Test that a shared NAT gateway without a public tier is rejected."""
    @pulumi.runtime.test
    def allocate():
        allocate_network(
            "b",
            "10.0.0.0/16",
            derive_subnet_plan(private_app=True),
            AVAILABILITY_ZONES,
            nat_strategy=NatStrategy.SHARED,
        )

    with pytest.raises(ConfigurationError):
        allocate()

def test_too_small_network_block_is_a_configuration_error():
    """Test that the component reports an unusable address block as configuration."""
    with pytest.raises(ConfigurationError):
        build(make_args(cidr="10.129.0.0/26", public_subnets=True))
