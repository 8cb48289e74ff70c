"""
Exceptions raised while planning and provisioning a tiered VPC.
"""

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .networking.endpoints import EndpointResult


class TieredVpcError(Exception):
    """Base class for all tiered-vpc errors."""


class ConfigurationError(TieredVpcError, ValueError):
    """Raised when configuration values or argument combinations are invalid."""


class RouteTableClassificationError(TieredVpcError):
    """Raised when a route table has no resolved id at classification time."""


class EndpointAttachmentError(TieredVpcError):
    """
    Raised once after every endpoint has been attempted, when one or more failed.

    Attributes:
        failures: The failed endpoint results, in request order
    """

    def __init__(self, failures: List["EndpointResult"]):
        self.failures = failures
        details = "; ".join(f"{result.service}: {result.error}" for result in failures)
        super().__init__(f"{len(failures)} endpoint(s) could not be created: {details}")
