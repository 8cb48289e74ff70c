"""
Stack configuration for a tiered VPC.

Values are read from the Pulumi stack configuration (``Pulumi.<stack>.yaml``)
of the current project.
"""

import ipaddress
from typing import Any, List, Optional

import pulumi

from .errors import ConfigurationError
from .networking.subnets import MAX_NETWORK_PREFIX
from .utils.tags import join_name

DEFAULT_CIDR = "10.0.0.0/16"


def dedupe_services(services: List[str]) -> List[str]:
    """
    Remove duplicate endpoint service names, keeping the first occurrence.

    Args:
        services: Service names as configured

    Returns:
        List[str]: Service names without duplicates, in configured order
    """
    unique = list(dict.fromkeys(services))
    dropped = len(services) - len(unique)
    if dropped:
        pulumi.log.warn(f"Ignoring {dropped} duplicate interface endpoint name(s)")
    return unique


def validate_cidr(cidr: str) -> str:
    try:
        network = ipaddress.ip_network(cidr)
    except ValueError as e:
        raise ConfigurationError(f"Invalid CIDR block {cidr!r}: {e}") from e
    if network.version != 4:
        raise ConfigurationError(f"CIDR block {cidr!r} is not IPv4")
    if network.prefixlen > MAX_NETWORK_PREFIX:
        raise ConfigurationError(f"CIDR block {cidr!r} is too small; use /{MAX_NETWORK_PREFIX} or larger")
    return str(network)


def _string_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"Config value '{key}' must be a list of strings")
    return value


class NetworkSettings:
    """Settings of one tiered VPC deployment."""

    def __init__(
        self,
        namespace: str,
        environment: str,
        name: str,
        cidr: str = DEFAULT_CIDR,
        public_subnets: bool = False,
        private_app_subnets: bool = False,
        private_data_subnets: bool = False,
        isolated_data_subnets: bool = False,
        interface_endpoints: Optional[List[str]] = None,
        availability_zones: Optional[List[str]] = None,
        peer_stack: Optional[str] = None,
        verify_endpoint_services: bool = False,
    ):
        self.namespace = namespace
        self.environment = environment
        self.name = name
        self.cidr = validate_cidr(cidr)
        self.public_subnets = public_subnets
        self.private_app_subnets = private_app_subnets
        self.private_data_subnets = private_data_subnets
        self.isolated_data_subnets = isolated_data_subnets
        self.interface_endpoints = dedupe_services(interface_endpoints or [])
        self.availability_zones = availability_zones or None
        self.peer_stack = peer_stack
        self.verify_endpoint_services = verify_endpoint_services

    @property
    def base_name(self) -> str:
        return join_name(self.namespace, self.environment, self.name)


def load_settings(config: Optional[pulumi.Config] = None) -> NetworkSettings:
    """
    Load network settings from the stack configuration.

    Args:
        config: Optional config object (default: the current project's config)

    Returns:
        NetworkSettings: Validated settings
    """
    config = config or pulumi.Config()
    return NetworkSettings(
        namespace=config.require("namespace"),
        environment=config.require("environment"),
        name=config.require("name"),
        cidr=config.get("cidr") or DEFAULT_CIDR,
        public_subnets=bool(config.get_bool("publicSubnets")),
        private_app_subnets=bool(config.get_bool("privateAppSubnets")),
        private_data_subnets=bool(config.get_bool("privateDataSubnets")),
        isolated_data_subnets=bool(config.get_bool("isolatedDataSubnets")),
        interface_endpoints=_string_list(config.get_object("interfaceEndpoints"), "interfaceEndpoints"),
        availability_zones=_string_list(config.get_object("availabilityZones"), "availabilityZones"),
        peer_stack=config.get("peerStack"),
        verify_endpoint_services=bool(config.get_bool("verifyEndpointServices")),
    )
