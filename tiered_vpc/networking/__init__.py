"""
Networking infrastructure components.
"""

from .subnets import (
    AZ_COUNT,
    NatStrategy,
    SubnetTierSpec,
    SubnetType,
    TierKind,
    derive_subnet_plan,
    select_nat_strategy,
)
from .route_tables import ClassifiedRouteTable, classify_route_tables, resolve_route_table_classes
from .endpoints import EndpointResult, GATEWAY_SERVICES
from .peering import PeeringEstablisher, PeeringState
from .vpc import TieredVpc, TieredVpcArgs, allocate_network, get_availability_zones

__all__ = [
    'AZ_COUNT',
    'NatStrategy',
    'SubnetTierSpec',
    'SubnetType',
    'TierKind',
    'derive_subnet_plan',
    'select_nat_strategy',
    'ClassifiedRouteTable',
    'classify_route_tables',
    'resolve_route_table_classes',
    'EndpointResult',
    'GATEWAY_SERVICES',
    'PeeringEstablisher',
    'PeeringState',
    'TieredVpc',
    'TieredVpcArgs',
    'allocate_network',
    'get_availability_zones',
]
