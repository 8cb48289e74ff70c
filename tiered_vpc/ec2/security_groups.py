import pulumi
import pulumi_aws as aws
from typing import List, Dict, Optional

class SecurityRule:
    def __init__(
        self,
        protocol: str,
        from_port: int,
        to_port: int,
        cidr_blocks: Optional[List[str]] = None,
        description: Optional[str] = None
    ):
        self.protocol = protocol
        self.from_port = from_port
        self.to_port = to_port
        self.cidr_blocks = cidr_blocks or []
        self.description = description

    @property
    def key(self) -> str:
        return f"{self.protocol}-{self.from_port}"

# Every protocol, every port, every address
ALLOW_ALL = SecurityRule(
    protocol="-1",
    from_port=0,
    to_port=0,
    cidr_blocks=["0.0.0.0/0"],
    description="Allow all traffic",
)

def create_security_group(
    name: str,
    vpc_id: pulumi.Input[str],
    description: str,
    ingress_rules: List[SecurityRule],
    egress_rules: Optional[List[SecurityRule]] = None,
    tags: Optional[Dict[str, str]] = None,
    opts: Optional[pulumi.ResourceOptions] = None,
) -> aws.ec2.SecurityGroup:
    """
    Create a security group with the specified rules.

    Rules are created as separate SecurityGroupRule resources parented to the
    group, so the group itself never carries inline rules.

    Args:
        name: Name of the security group
        vpc_id: ID of the VPC
        description: Description of the security group
        ingress_rules: List of ingress rules
        egress_rules: Optional list of egress rules (default: allow all outbound)
        tags: Optional dictionary of tags
        opts: Optional resource options for the group

    Returns:
        aws.ec2.SecurityGroup: The created security group
    """
    sg = aws.ec2.SecurityGroup(
        name,
        name=name,
        vpc_id=vpc_id,
        description=description,
        tags=tags,
        opts=opts,
    )

    if egress_rules is None:
        egress_rules = [ALLOW_ALL]

    for direction, rules in (("ingress", ingress_rules), ("egress", egress_rules)):
        for rule in rules:
            aws.ec2.SecurityGroupRule(
                f"{name}-{direction}-{rule.key}",
                security_group_id=sg.id,
                type=direction,
                protocol=rule.protocol,
                from_port=rule.from_port,
                to_port=rule.to_port,
                cidr_blocks=rule.cidr_blocks,
                description=rule.description,
                opts=pulumi.ResourceOptions(parent=sg),
            )

    return sg
