"""
Synthetic test data for the count scenarios
"""

import json
import logging
from typing import List, Optional

from errors import BulkLoadError
from es_client import SqlRestClient
from models import SyntheticDocument

logger = logging.getLogger(__name__)

def synthetic_documents(count: int) -> List[SyntheticDocument]:
    """Documents for rows 0..count-1"""
    return [SyntheticDocument.for_row(i) for i in range(count)]

def build_bulk_body(documents: List[SyntheticDocument]) -> str:
    """Newline-delimited action/source pairs, one pair per document"""
    lines = []
    for doc in documents:
        lines.append(json.dumps({"index": {"_id": str(doc.doc_id)}}))
        lines.append(json.dumps(doc.to_source()))
    return "\n".join(lines) + "\n"

async def load_test_data(client: SqlRestClient, index: str, count: int,
                         doc_type: Optional[str] = None):
    """Insert `count` synthetic documents and refresh so they are searchable at once"""
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValueError(f"Document count must be a positive integer, got {count!r}")

    body = build_bulk_body(synthetic_documents(count))
    response = await client.bulk(index, body, doc_type=doc_type, refresh=True)

    if response and response.get('errors'):
        failed = [
            item for item in response.get('items', [])
            if next(iter(item.values()), {}).get('error')
        ]
        first_error = next(iter(failed[0].values())).get('error') if failed else None
        logger.error(f"Bulk load into {index} reported {len(failed)} failed item(s)")
        raise BulkLoadError(index, len(failed), first_error)

    logger.info(f"✓ Loaded {count} documents into {index}")
