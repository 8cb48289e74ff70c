"""
EC2 infrastructure components.
"""

from .security_groups import create_security_group, SecurityRule, ALLOW_ALL

__all__ = [
    'create_security_group',
    'SecurityRule',
    'ALLOW_ALL',
]
