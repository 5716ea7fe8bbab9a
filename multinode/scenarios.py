"""
Count consistency scenarios run against a multi-node cluster
"""

import logging
import random
import time
from typing import List, Optional

import aiohttp

from config import Config
from data_loader import load_test_data
from errors import HarnessError, ResultMismatchError
from es_client import SqlRestClient
from models import VerificationResult
from placement import exclude_from_allocation
from topology import locate_node
from verifier import CountVerifier

logger = logging.getLogger(__name__)

INDEX_SPREAD = "index_spread"
INDEX_ON_WRONG_NODE = "index_on_wrong_node"

class MultiNodeSqlTester:
    """Runs the count scenarios against the configured cluster"""

    def __init__(self, config: Config, rng: Optional[random.Random] = None):
        self.config = config
        self.settings = config.settings
        self.rng = rng or random.Random(self.settings.seed)
        self.client = SqlRestClient(config.cluster)
        self.first_host = config.cluster.hosts[0]

    async def setup(self):
        """Open the cluster-wide client"""
        await self.client.connect()
        logger.info(f"✓ Connected to {', '.join(self.client.entry_points)}")

    async def cleanup(self):
        """Drop the test index and close the cluster-wide client"""
        logger.info("Cleaning up...")
        try:
            await self.client.delete_index(self.settings.index)
        finally:
            await self.client.disconnect()

    def random_document_count(self) -> int:
        return self.rng.randint(self.settings.min_documents, self.settings.max_documents)

    def random_mode(self) -> str:
        return self.rng.choice(self.settings.modes)

    def _verifier(self, mode: str) -> CountVerifier:
        return CountVerifier(self.settings.index, self.settings.sql_endpoint, mode)

    async def _reset_index(self):
        if await self.client.delete_index(self.settings.index):
            logger.info(f"Dropped stale index {self.settings.index}")

    async def _drop_after_failure(self):
        """Drop the test index while another error is propagating.

        A transport error here is logged and swallowed so it cannot replace
        the failure that ended the scenario.
        """
        try:
            await self.client.delete_index(self.settings.index)
        except aiohttp.ClientError as e:
            logger.warning(f"⚠️  Could not drop {self.settings.index} after a failed scenario: {e}")

    async def _load(self, documents: int):
        await load_test_data(self.client, self.settings.index, documents, self.settings.doc_type)

    def _passed(self, scenario: str, entry_points: List[str], mode: str, documents: int,
                expected, actual, start_time: float, **details) -> VerificationResult:
        return VerificationResult(
            scenario=scenario,
            entry_points=entry_points,
            mode=mode,
            document_count=documents,
            expected=expected.to_dict(),
            actual=actual.to_dict(),
            execution_time=time.time() - start_time,
            details=details
        )

    async def check_index_spread(self, documents: Optional[int] = None,
                                 mode: Optional[str] = None) -> VerificationResult:
        """Count an index spread over the whole cluster, entering through any node"""
        if documents is None:
            documents = self.random_document_count()
        if mode is None:
            mode = self.random_mode()
        start_time = time.time()

        await self._reset_index()
        try:
            await self._load(documents)
            expected, actual = await self._verifier(mode).verify(self.client, documents)
        except Exception:
            await self._drop_after_failure()
            raise
        await self.client.delete_index(self.settings.index)

        return self._passed(INDEX_SPREAD, self.client.entry_points, mode, documents,
                            expected, actual, start_time)

    async def check_index_on_wrong_node(self, documents: Optional[int] = None,
                                        mode: Optional[str] = None) -> VerificationResult:
        """Count through a node that holds none of the index's shards"""
        if documents is None:
            documents = self.random_document_count()
        if mode is None:
            mode = self.random_mode()
        start_time = time.time()

        await self._reset_index()
        try:
            node_id = await locate_node(self.client, self.first_host)
            await exclude_from_allocation(
                self.client, self.settings.index, node_id,
                self.settings.allocation_exclude_setting
            )
            await self._load(documents)

            async with SqlRestClient(self.config.cluster, hosts=[self.first_host]) as node_client:
                expected, actual = await self._verifier(mode).verify(node_client, documents)
        except Exception:
            await self._drop_after_failure()
            raise
        await self.client.delete_index(self.settings.index)

        return self._passed(INDEX_ON_WRONG_NODE, [self.first_host.signature], mode, documents,
                            expected, actual, start_time, excluded_node=node_id)

    async def run_all(self) -> List[VerificationResult]:
        """Run every scenario once, recording failures instead of stopping"""
        scenarios = [
            (INDEX_SPREAD, self.check_index_spread, self.client.entry_points),
            (INDEX_ON_WRONG_NODE, self.check_index_on_wrong_node, [self.first_host.signature])
        ]

        results = []
        for name, check, entry_points in scenarios:
            documents = self.random_document_count()
            mode = self.random_mode()
            logger.info(f"Running {name} with {documents} documents in {mode} mode")
            start_time = time.time()

            try:
                result = await check(documents, mode)
            except ResultMismatchError as e:
                result = VerificationResult(
                    scenario=name, entry_points=entry_points, mode=mode,
                    document_count=documents, expected=e.expected, actual=e.actual,
                    mismatch=e.diff, execution_time=time.time() - start_time
                )
            except (HarnessError, AssertionError, aiohttp.ClientError) as e:
                result = VerificationResult(
                    scenario=name, entry_points=entry_points, mode=mode,
                    document_count=documents, error=f"{type(e).__name__}: {e}",
                    execution_time=time.time() - start_time
                )

            if result.passed:
                logger.info(f"✓ {name} passed")
            else:
                logger.warning(f"⚠️  {name} failed: {result.mismatch or result.error}")
            results.append(result)

        return results
