"""
Cluster topology parsing and node lookup by address
"""

import logging
from typing import Dict, List, Any, Optional

from config import NodeAddress
from errors import NodeNotFoundError, ResponseParseError
from es_client import SqlRestClient
from models import NodeInfo, TopologySnapshot

logger = logging.getLogger(__name__)

def parse_nodes_response(payload: Any) -> TopologySnapshot:
    """Turn a GET /_nodes body into a snapshot, keeping response order"""
    if not isinstance(payload, dict):
        raise ResponseParseError("_nodes", f"expected an object, got {type(payload).__name__}")
    nodes = payload.get('nodes')
    if not isinstance(nodes, dict):
        raise ResponseParseError("_nodes", "missing 'nodes' object")

    parsed = []
    for node_id, entry in nodes.items():
        if not isinstance(entry, dict):
            raise ResponseParseError("_nodes", f"node {node_id} is not an object")

        # Nodes with HTTP disabled publish no http section
        http = entry.get('http')
        if http is None:
            addresses = ()
        else:
            bound = http.get('bound_address') if isinstance(http, dict) else None
            if not isinstance(bound, list) or not all(isinstance(a, str) for a in bound):
                raise ResponseParseError(
                    "_nodes", f"node {node_id} has no bound_address list in its http section"
                )
            addresses = tuple(bound)

        parsed.append(NodeInfo(node_id=node_id, name=entry.get('name', node_id),
                               bound_addresses=addresses))

    return TopologySnapshot(nodes=tuple(parsed))

def find_node_by_address(snapshot: TopologySnapshot, signature: str) -> Optional[str]:
    """Identifier of the first node binding `signature`, or None"""
    matches: List[str] = [node.node_id for node in snapshot if signature in node.bound_addresses]
    if len(matches) > 1:
        logger.warning(f"⚠️  {signature} is bound by several nodes {matches}, using {matches[0]}")
    return matches[0] if matches else None

async def fetch_topology(client: SqlRestClient) -> TopologySnapshot:
    return parse_nodes_response(await client.get_nodes())

async def locate_node(client: SqlRestClient, target: NodeAddress) -> str:
    """Resolve the node identifier serving `target`"""
    snapshot = await fetch_topology(client)
    node_id = find_node_by_address(snapshot, target.signature)
    if node_id is None:
        known: Dict[str, List[str]] = snapshot.addresses()
        logger.error(f"No node binds {target.signature}")
        raise NodeNotFoundError(target.signature, known)

    logger.info(f"✓ {target.signature} is node {node_id}")
    return node_id
