"""
Shared test fixtures and configuration.
"""

import pytest
import pulumi
import os
import sys

# Add the parent directory to the path so we can import the tiered_vpc package
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

AVAILABILITY_ZONES = ["us-east-1a", "us-east-1b", "us-east-1c"]

# Mock Pulumi engine
class NetworkMocks(pulumi.runtime.Mocks):
    """Mock Pulumi engine that records every resource it is asked to create."""

    def __init__(self):
        self.resources = []
        self.service_types = {}
        self.accept_status = "active"

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.resources.append((args.typ, args.name, args.inputs))
        state = dict(args.inputs)
        if args.typ == "aws:ec2/vpc:Vpc":
            state["defaultRouteTableId"] = f"{args.name}-rtb-default"
        if args.typ == "aws:ec2/vpcPeeringConnection:VpcPeeringConnection":
            state["acceptStatus"] = self.accept_status
        return [f"{args.name}_id", state]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:index/getAvailabilityZones:getAvailabilityZones":
            return {"names": AVAILABILITY_ZONES + ["us-east-1d"]}
        if args.token == "aws:ec2/getVpcEndpointService:getVpcEndpointService":
            name = args.args.get("serviceName")
            return {"serviceName": name, "serviceType": self.service_types.get(name, "Interface")}
        return {}

    def named(self, typ: str):
        """Names of recorded resources of one type, in creation order."""
        return [name for resource_typ, name, _ in self.resources if resource_typ == typ]

    def inputs(self, typ: str, name: str):
        """Inputs of one recorded resource."""
        for resource_typ, resource_name, inputs in self.resources:
            if resource_typ == typ and resource_name == name:
                return inputs
        raise KeyError(f"{typ} {name} was not created")

@pytest.fixture(autouse=True)
def mocks():
    """Fresh Pulumi mocks for every test."""
    engine = NetworkMocks()
    pulumi.runtime.set_mocks(engine, project="tiered-vpc", stack="test", preview=False)
    return engine
