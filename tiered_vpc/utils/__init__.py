"""
Utility functions for infrastructure management.
"""

from .tags import get_default_tags, merge_tags, join_name
from .peering_check import PeeringChecker, check_stack_peering, get_stack_outputs

__all__ = [
    'get_default_tags',
    'merge_tags',
    'join_name',
    'PeeringChecker',
    'check_stack_peering',
    'get_stack_outputs',
]
