"""
tiered-vpc: a tiered AWS VPC component built with Pulumi.
"""

__version__ = "0.1.0"
