#!/usr/bin/env python3
"""
Peering Check Script

This script reports whether the VPC peering connection of a tiered VPC stack is
active and whether every private route table routes through it.
"""

import argparse
import json
import sys
import os

# Add the parent directory to the path so we can import the tiered_vpc package
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tiered_vpc.utils.peering_check import check_stack_peering

def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Check the VPC peering connection of a tiered VPC stack"
    )

    parser.add_argument("--stack", help="Pulumi stack name (default: selected stack)")
    parser.add_argument("--cwd", help="Pulumi project directory")
    parser.add_argument("--region", help="AWS region (default: from the AWS profile)")
    parser.add_argument("--json", action="store_true", help="Output in JSON format")

    return parser.parse_args()

def main():
    """Main function."""
    args = parse_args()

    report = check_stack_peering(args.stack, region=args.region, cwd=args.cwd)
    if report is None:
        print("Stack has no peering connection")
        return

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(f"Peering connection {report['connection_id']}: {report['status']}")
        for route_table_id, routed in report["routes"].items():
            print(f"   {route_table_id}: {'routed' if routed else 'MISSING ROUTE'}")

    if not report["healthy"]:
        sys.exit(1)

if __name__ == "__main__":
    main()
