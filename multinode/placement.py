"""
Shard placement control for the test index
"""

import logging
from typing import Dict, Any

from es_client import SqlRestClient

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_SETTING = "routing.allocation.exclude._id"

def allocation_exclusion_body(node_id: str, setting: str = DEFAULT_EXCLUDE_SETTING) -> Dict[str, Any]:
    return {"settings": {setting: node_id}}

async def exclude_from_allocation(client: SqlRestClient, index: str, node_id: str,
                                  setting: str = DEFAULT_EXCLUDE_SETTING):
    """Create `index` so that none of its shards land on `node_id`.

    Allocation is decided when the index is created, so this has to run
    before any document is written to the index.
    """
    await client.create_index(index, allocation_exclusion_body(node_id, setting))
    logger.info(f"✓ Created {index} with {setting}={node_id}")
