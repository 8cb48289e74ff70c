"""
Peering Check Utility

This module inspects a deployed peering connection with boto3: whether the
connection is active and whether each route table has a route through it.
Peering connections that need manual (cross-account) acceptance show up here
as ``pending-acceptance``.
"""

import json
import shutil
import subprocess
from typing import Any, Dict, List, Optional

import boto3

ACTIVE = "active"


def get_stack_outputs(stack_name: Optional[str] = None, cwd: Optional[str] = None) -> Dict[str, Any]:
    """
    Get the outputs of a Pulumi stack.

    Args:
        stack_name: Optional stack name (default: the selected stack)
        cwd: Optional project directory

    Returns:
        Dict[str, Any]: Stack outputs, empty if they could not be read
    """
    if shutil.which("pulumi") is None:
        print("Error: Pulumi CLI is not installed or not in PATH")
        return {}

    cmd = ["pulumi", "stack", "output", "--json"]
    if stack_name:
        cmd.extend(["--stack", stack_name])
    if cwd:
        cmd.extend(["--cwd", cwd])

    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        print(f"Error reading stack outputs: {result.stderr}")
        return {}

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError:
        print("Error: Could not parse Pulumi stack output")
        return {}


class PeeringChecker:
    """
    Reports on a VPC peering connection and the routes that use it.
    """

    def __init__(self, region: Optional[str] = None, ec2_client: Any = None):
        """
        Args:
            region: Optional AWS region (default: from the AWS profile)
            ec2_client: Optional pre-built EC2 client
        """
        self.ec2 = ec2_client or boto3.client("ec2", region_name=region)

    def connection_status(self, connection_id: str) -> Optional[str]:
        """
        Get the status code of a peering connection.

        Returns:
            Optional[str]: Status code such as ``active`` or ``pending-acceptance``,
                or None if the connection does not exist
        """
        response = self.ec2.describe_vpc_peering_connections(VpcPeeringConnectionIds=[connection_id])
        connections = response.get("VpcPeeringConnections", [])
        if not connections:
            return None
        return connections[0].get("Status", {}).get("Code")

    def routed_tables(self, connection_id: str, route_table_ids: List[str]) -> Dict[str, bool]:
        """
        Check which route tables have a route through the peering connection.

        Args:
            connection_id: Peering connection ID
            route_table_ids: Route tables expected to route through it

        Returns:
            Dict[str, bool]: Route table ID to whether a peering route exists
        """
        routed = {route_table_id: False for route_table_id in route_table_ids}
        if not routed:
            return routed

        paginator = self.ec2.get_paginator("describe_route_tables")
        for page in paginator.paginate(RouteTableIds=list(routed)):
            for table in page.get("RouteTables", []):
                routed[table["RouteTableId"]] = any(
                    route.get("VpcPeeringConnectionId") == connection_id
                    for route in table.get("Routes", [])
                )
        return routed

    def check(self, connection_id: str, route_table_ids: List[str]) -> Dict[str, Any]:
        """
        Build a full report for a peering connection.

        Returns:
            Dict[str, Any]: ``connection_id``, ``status``, ``routes`` and ``healthy``
        """
        status = self.connection_status(connection_id)
        routes = self.routed_tables(connection_id, route_table_ids)
        return {
            "connection_id": connection_id,
            "status": status,
            "routes": routes,
            "healthy": status == ACTIVE and all(routes.values()),
        }


def check_stack_peering(
    stack_name: Optional[str] = None,
    region: Optional[str] = None,
    cwd: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Check the peering connection of a tiered VPC stack.

    Only the local private route tables are checked; the remote side's tables
    belong to the peer stack.

    Returns:
        Optional[Dict[str, Any]]: The report, or None if the stack has no peering connection
    """
    outputs = get_stack_outputs(stack_name, cwd)
    connection_id = outputs.get("peeringConnectionId")
    if not connection_id:
        return None
    return PeeringChecker(region=region).check(connection_id, outputs.get("privateRouteTableIds") or [])
