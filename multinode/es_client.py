"""
REST client for the cluster under test
"""

import itertools
import json
import logging
from typing import Dict, List, Any, Optional

import aiohttp

from config import ClusterConfig, NodeAddress

logger = logging.getLogger(__name__)

class SqlRestClient:
    """HTTP client bound to a fixed set of cluster entry points.

    Requests rotate across the configured hosts, so a client built over the
    whole cluster spreads its calls while a client built over a single host
    always enters the cluster through that node.
    """

    def __init__(self, config: ClusterConfig, hosts: Optional[List[NodeAddress]] = None):
        self.config = config
        self.hosts = list(hosts) if hosts is not None else list(config.hosts)
        if not self.hosts:
            raise ValueError("SqlRestClient needs at least one host")
        self.session: Optional[aiohttp.ClientSession] = None
        self._host_cycle = itertools.cycle(self.hosts)

    def __repr__(self) -> str:
        return f"SqlRestClient({', '.join(self.entry_points)})"

    @property
    def entry_points(self) -> List[str]:
        return [h.signature for h in self.hosts]

    async def connect(self):
        """Open the HTTP session"""
        auth = None
        if self.config.username:
            auth = aiohttp.BasicAuth(self.config.username, self.config.password)
        kwargs = {}
        if self.config.timeout_seconds is not None:
            kwargs['timeout'] = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        self.session = aiohttp.ClientSession(auth=auth, **kwargs)

    async def disconnect(self):
        """Close the HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "SqlRestClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.disconnect()

    def _next_url(self, path: str) -> str:
        host = next(self._host_cycle)
        return f"{self.config.scheme}://{host.host}:{host.port}{path}"

    async def perform_request(self, method: str, path: str, params: Optional[Dict[str, str]] = None,
                              json_body: Optional[Dict[str, Any]] = None, data: Optional[str] = None,
                              headers: Optional[Dict[str, str]] = None) -> Any:
        """Send one request and return the decoded JSON body.

        Non-2xx responses raise ``aiohttp.ClientResponseError`` carrying the
        response text; connection problems raise the underlying
        ``aiohttp.ClientError``. Neither is retried.
        """
        if self.session is None:
            raise RuntimeError(f"{self!r} is not connected")

        url = self._next_url(path)
        logger.debug(f"{method} {url} params={params}")
        async with self.session.request(
            method, url, params=params, json=json_body, data=data, headers=headers
        ) as response:
            if response.status >= 400:
                body = await response.text()
                logger.debug(f"{method} {url} failed: {response.status} - {body[:200]}")
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=body[:500],
                    headers=response.headers
                )
            return await response.json(content_type=None)

    async def info(self) -> Dict[str, Any]:
        """Root endpoint of the next entry point"""
        return await self.perform_request("GET", "/")

    async def get_nodes(self) -> Dict[str, Any]:
        """Raw cluster topology"""
        return await self.perform_request("GET", "/_nodes")

    async def create_index(self, index: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.perform_request("PUT", f"/{index}", json_body=body)

    async def delete_index(self, index: str) -> bool:
        """Delete an index, returning False if it did not exist"""
        try:
            await self.perform_request("DELETE", f"/{index}")
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                return False
            raise
        return True

    async def bulk(self, index: str, body: str, doc_type: Optional[str] = None,
                   refresh: bool = True) -> Dict[str, Any]:
        """Send a newline-delimited bulk body in a single request"""
        path = f"/{index}/{doc_type}/_bulk" if doc_type else f"/{index}/_bulk"
        params = {"refresh": "true"} if refresh else None
        return await self.perform_request(
            "POST", path, params=params, data=body,
            headers={"Content-Type": "application/x-ndjson"}
        )

    async def sql_query(self, endpoint: str, query: str,
                        mode_fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a SQL statement; mode fields are passed through unchanged"""
        body = {"query": query}
        body.update(mode_fields or {})
        logger.debug(f"SQL request: {json.dumps(body)}")
        return await self.perform_request("POST", endpoint, json_body=body)
