"""
Subnet tier planning.

A plan is an ordered list of SubnetTierSpec built from four feature flags. The
plan decides which tiers exist, whether a shared NAT gateway is needed and which
address slot every (tier, availability zone) pair is carved from.
"""

import ipaddress
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from ..errors import ConfigurationError

AZ_COUNT = 3

# The network block is split into 16 equal slots; each tier kind owns a fixed
# run of AZ_COUNT slots so toggling one tier never moves another.
SLOT_PREFIX_DELTA = 4
MAX_NETWORK_PREFIX = 24


class SubnetType(str, Enum):
    """Routing class of a subnet, carried in the ``SubnetType`` tag."""

    PUBLIC = "Public"
    PRIVATE = "Private"
    ISOLATED = "Isolated"
    UNCLASSIFIED = "Unclassified"

    @classmethod
    def from_tag(cls, value: Optional[str]) -> "SubnetType":
        for member in (cls.PUBLIC, cls.PRIVATE, cls.ISOLATED):
            if value == member.value:
                return member
        return cls.UNCLASSIFIED


class TierKind(Enum):
    PUBLIC = ("public", SubnetType.PUBLIC, 0)
    PRIVATE_APP = ("private-app", SubnetType.PRIVATE, 1)
    PRIVATE_DATA = ("private-data", SubnetType.PRIVATE, 2)
    ISOLATED = ("isolated-data", SubnetType.ISOLATED, 3)

    def __init__(self, label: str, subnet_type: SubnetType, slot: int):
        self.label = label
        self.subnet_type = subnet_type
        self.slot = slot


class NatStrategy(str, Enum):
    SHARED = "shared"
    NONE = "none"


class SubnetTierSpec(NamedTuple):
    kind: TierKind
    label: str
    tags: Dict[str, str]

    @property
    def subnet_type(self) -> SubnetType:
        return self.kind.subnet_type


def derive_subnet_plan(
    public: bool = False,
    private_app: bool = False,
    private_data: bool = False,
    isolated_data: bool = False,
    tags: Optional[Dict[str, str]] = None,
) -> List[SubnetTierSpec]:
    """
    Build the ordered subnet plan from tier flags.

    Tiers whose flag is false are skipped. An all-false input gives an empty
    plan, which is valid: the network is then created without subnets.

    Args:
        public: Create internet-routable subnets
        private_app: Create NAT-routed application subnets
        private_data: Create NAT-routed data subnets
        isolated_data: Create subnets with no route out of the network
        tags: Optional base tags copied onto every tier

    Returns:
        List[SubnetTierSpec]: Tier specs in allocation order
    """
    base_tags = dict(tags or {})
    plan = []

    if public:
        plan.append(SubnetTierSpec(TierKind.PUBLIC, TierKind.PUBLIC.label, dict(base_tags)))
    if private_app:
        plan.append(SubnetTierSpec(
            TierKind.PRIVATE_APP,
            TierKind.PRIVATE_APP.label,
            {**base_tags, "PrivateSubnetType": "App"},
        ))
    if private_data:
        plan.append(SubnetTierSpec(
            TierKind.PRIVATE_DATA,
            TierKind.PRIVATE_DATA.label,
            {**base_tags, "PrivateSubnetType": "Data"},
        ))
    if isolated_data:
        plan.append(SubnetTierSpec(TierKind.ISOLATED, TierKind.ISOLATED.label, dict(base_tags)))

    return plan


def select_nat_strategy(public: bool = False, private_app: bool = False, private_data: bool = False) -> NatStrategy:
    """
    Pick the NAT strategy for a tier combination.

    A shared NAT gateway is needed only when a public tier can host it and at
    least one private tier routes through it. Isolated tiers never need one.
    """
    if public and (private_app or private_data):
        return NatStrategy.SHARED
    return NatStrategy.NONE


def plan_nat_strategy(plan: List[SubnetTierSpec]) -> NatStrategy:
    kinds = {spec.kind for spec in plan}
    return select_nat_strategy(
        public=TierKind.PUBLIC in kinds,
        private_app=TierKind.PRIVATE_APP in kinds,
        private_data=TierKind.PRIVATE_DATA in kinds,
    )


def allocate_subnet_cidrs(cidr: str, plan: List[SubnetTierSpec], az_count: int = AZ_COUNT) -> Dict[TierKind, List[str]]:
    """
    Carve per-zone subnet blocks for every tier in the plan.

    Args:
        cidr: Address block of the network
        plan: Subnet plan
        az_count: Number of availability zones

    Returns:
        Dict[TierKind, List[str]]: Subnet CIDRs per tier, indexed by zone
    """
    try:
        network = ipaddress.ip_network(cidr)
    except ValueError as e:
        raise ConfigurationError(f"Invalid network block {cidr!r}: {e}") from e
    if network.version != 4:
        raise ConfigurationError(f"Only IPv4 network blocks are supported, got {cidr}")
    if network.prefixlen > MAX_NETWORK_PREFIX:
        raise ConfigurationError(f"Network block {cidr} is too small; use /{MAX_NETWORK_PREFIX} or larger")

    slots = list(network.subnets(prefixlen_diff=SLOT_PREFIX_DELTA))
    if len(TierKind) * az_count > len(slots):
        raise ConfigurationError(f"Cannot fit {az_count} zones per tier into {cidr}")

    return {
        spec.kind: [str(slots[spec.kind.slot * az_count + zone]) for zone in range(az_count)]
        for spec in plan
    }
