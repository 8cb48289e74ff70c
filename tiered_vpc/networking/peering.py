"""
VPC peering with a separately managed network.

The peering connection is requested with auto-accept, which only works when both
VPCs belong to the same account. Once the connection's accept status resolves,
two independent fan-outs add routes through it:

- one route per local private route table, towards the remote address block
- one route per remote route table, towards the local address block

Both collections are only known once they resolve, so routes are created from
inside ``Output.apply`` and named after the route table id rather than its
position. Every route is a child of the peering connection, so the connection
cannot be deleted while a route still points at it.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import pulumi
import pulumi_aws as aws

from ..errors import ConfigurationError
from ..utils.tags import join_name, merge_tags
from .route_tables import resolve_route_table_ids

ACTIVE = "active"


class PeeringState(Enum):
    NO_PEER = "NoPeer"
    LINK_REQUESTED = "LinkRequested"
    LINK_ACTIVE = "LinkActive"
    LOCAL_ROUTES_INJECTED = "LocalRoutesInjected"
    REMOTE_ROUTES_INJECTED = "RemoteRoutesInjected"
    DONE = "Done"


def local_route_name(name: str, route_table_id: str) -> str:
    return f"{name}-{route_table_id}-peer"


def remote_route_name(name: str, route_table_id: str) -> str:
    return f"peer-{route_table_id}-{name}"


class PeeringEstablisher:
    """
    Peer a local VPC with a remote one and route between them.

    ``state`` follows the connection as it resolves:

        LINK_REQUESTED -> LINK_ACTIVE -> LOCAL_ROUTES_INJECTED / REMOTE_ROUTES_INJECTED -> DONE

    The two route fan-outs finish in either order. A connection that never
    becomes active skips LINK_ACTIVE; its routes are still issued. Without a
    remote VPC the state is NO_PEER and nothing else happens.

    Attributes:
        state: Latest state reached
        transitions: Every state reached, in order
        connection: The peering connection, or None
        link_status: Resolves to the connection's accept status
        local_routes: Routes added to local private route tables
        remote_routes: Routes added to remote route tables
        status: Resolves to DONE once both route fan-outs are issued, or NO_PEER
    """

    def __init__(
        self,
        name: str,
        vpc_id: pulumi.Input[str],
        local_cidr: pulumi.Input[str],
        local_route_tables: pulumi.Input[Sequence[Any]],
        peer_vpc_id: Optional[pulumi.Input[str]] = None,
        peer_cidr: Optional[pulumi.Input[str]] = None,
        peer_route_tables: Optional[pulumi.Input[Sequence[Any]]] = None,
        base_name: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
        parent: Optional[pulumi.Resource] = None,
    ):
        """
        Args:
            name: Deployment name, used in route names
            vpc_id: ID of the local VPC
            local_cidr: Address block of the local VPC
            local_route_tables: Local private route tables
            peer_vpc_id: Optional ID of the remote VPC; without it nothing is created
            peer_cidr: Address block of the remote VPC, required with peer_vpc_id
            peer_route_tables: Optional remote route tables, used as given
            base_name: Naming prefix of the network
            tags: Optional base tags
            parent: Optional parent resource
        """
        self.name = name
        self.parent = parent
        self.connection: Optional[aws.ec2.VpcPeeringConnection] = None
        self.transitions: List[PeeringState] = []

        if peer_vpc_id is None:
            self._advance(PeeringState.NO_PEER)
            self.link_status = pulumi.Output.from_input(None)
            self.local_routes = pulumi.Output.from_input([])
            self.remote_routes = pulumi.Output.from_input([])
            self.status = pulumi.Output.from_input(PeeringState.NO_PEER)
            pulumi.log.info("No peer VPC configured; skipping peering", resource=parent)
            return

        if peer_cidr is None:
            raise ConfigurationError("A peer VPC address block is required when a peer VPC id is given")

        self.connection = aws.ec2.VpcPeeringConnection(
            join_name(base_name or name, "peering"),
            vpc_id=vpc_id,
            peer_vpc_id=peer_vpc_id,
            auto_accept=True,
            tags=merge_tags(tags or {}, {"Name": join_name(base_name or name, "peering")}),
            opts=pulumi.ResourceOptions(parent=parent),
        )
        self._advance(PeeringState.LINK_REQUESTED)
        self.link_status = self.connection.accept_status.apply(self._check_accept_status)

        self.local_routes = self._inject_routes(
            local_route_tables, peer_cidr, local_route_name, PeeringState.LOCAL_ROUTES_INJECTED,
        )
        self.remote_routes = self._inject_routes(
            [] if peer_route_tables is None else peer_route_tables,
            local_cidr,
            remote_route_name,
            PeeringState.REMOTE_ROUTES_INJECTED,
        )

        self.status = pulumi.Output.all(self.local_routes, self.remote_routes).apply(self._finish)

    def _advance(self, state: PeeringState) -> None:
        self.state = state
        self.transitions.append(state)

    def _check_accept_status(self, status: Optional[str]) -> Optional[str]:
        if status == ACTIVE:
            self._advance(PeeringState.LINK_ACTIVE)
        elif status is not None:
            # Manual (cross-account) acceptance is not handled
            pulumi.log.warn(
                f"Peering connection status is '{status}'; routes will not carry traffic until it is accepted",
                resource=self.connection,
            )
        return status

    def _inject_routes(
        self,
        route_tables: pulumi.Input[Sequence[Any]],
        destination_cidr: pulumi.Input[str],
        route_name,
        injected: PeeringState,
    ) -> pulumi.Output[List[aws.ec2.Route]]:
        connection = self.connection

        def create(args) -> List[aws.ec2.Route]:
            route_table_ids, cidr, _ = args
            routes = [
                aws.ec2.Route(
                    route_name(self.name, route_table_id),
                    route_table_id=route_table_id,
                    destination_cidr_block=cidr,
                    vpc_peering_connection_id=connection.id,
                    opts=pulumi.ResourceOptions(parent=connection),
                )
                for route_table_id in route_table_ids
            ]
            self._advance(injected)
            return routes

        # Waiting on link_status keeps route injection after the link step
        return pulumi.Output.all(
            resolve_route_table_ids(route_tables), destination_cidr, self.link_status,
        ).apply(create)

    def _finish(self, routes: List[List[aws.ec2.Route]]) -> PeeringState:
        local_routes, remote_routes = routes
        pulumi.log.info(
            f"Peering routes issued: {len(local_routes)} local, {len(remote_routes)} remote",
            resource=self.parent,
        )
        self._advance(PeeringState.DONE)
        return PeeringState.DONE
