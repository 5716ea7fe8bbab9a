"""
Pytest configuration and shared fixtures: an in-process fake cluster
"""

# Standard library imports
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Third-party imports
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

# Local imports
from config import Config, NodeAddress
from es_client import SqlRestClient

COUNT_QUERY = re.compile(r"^SELECT COUNT\(\*\) FROM (\w+)$", re.IGNORECASE)


@dataclass
class RecordedRequest:
    node_id: str
    method: str
    path: str
    query: Dict[str, str]


@dataclass
class FakeIndex:
    settings: Dict[str, Any]
    shard_nodes: List[str]
    docs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    pending: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def refresh(self):
        self.docs.update(self.pending)
        self.pending.clear()


class FakeCluster:
    """Several HTTP nodes sharing one view of the indices.

    Shards are placed round-robin on the nodes not excluded by the index's
    allocation settings. Writes only become countable after a refresh. With
    ``partial_counts`` a node holding no shard of an index answers a count of
    zero, which is the regression the harness has to catch.
    """

    def __init__(self, node_count: int = 3, shards: int = 2, partial_counts: bool = False,
                 extra_sql_fields: Optional[Dict[str, Any]] = None, root_text: Optional[str] = None):
        self.node_ids = [f"nd{i}Xq7" for i in range(node_count)]
        self.node_names = [f"node-{i}" for i in range(node_count)]
        self.shards = shards
        self.partial_counts = partial_counts
        self.extra_sql_fields = extra_sql_fields or {}
        self.root_text = root_text
        self.indices: Dict[str, FakeIndex] = {}
        self.requests: List[RecordedRequest] = []
        self.servers: List[TestServer] = []

    @property
    def hosts(self) -> List[NodeAddress]:
        return [NodeAddress("127.0.0.1", server.port) for server in self.servers]

    def node_id_for(self, host: NodeAddress) -> str:
        return self.node_ids[self.hosts.index(host)]

    def requests_to(self, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.path == path]

    async def start(self):
        for node in range(len(self.node_ids)):
            server = TestServer(self._make_app(node), host="127.0.0.1")
            await server.start_server()
            self.servers.append(server)

    async def close(self):
        for server in self.servers:
            await server.close()

    def _excluded_nodes(self, settings: Dict[str, Any]) -> set:
        excluded = set()
        for key, value in settings.items():
            if key.endswith("routing.allocation.exclude._id"):
                excluded.update(str(value).split(","))
        return excluded

    def _new_index(self, settings: Dict[str, Any]) -> FakeIndex:
        excluded = self._excluded_nodes(settings)
        allowed = [n for n in self.node_ids if n not in excluded]
        shard_nodes = [allowed[i % len(allowed)] for i in range(self.shards)]
        return FakeIndex(settings=settings, shard_nodes=shard_nodes)

    def _make_app(self, node: int) -> web.Application:
        node_id = self.node_ids[node]

        @web.middleware
        async def record(request, handler):
            self.requests.append(
                RecordedRequest(node_id, request.method, request.path, dict(request.query))
            )
            return await handler(request)

        async def root(request):
            if self.root_text is not None:
                return web.Response(text=self.root_text, content_type="text/html")
            return web.json_response({"name": self.node_names[node], "cluster_name": "fake"})

        async def nodes(request):
            return web.json_response({
                "_nodes": {"total": len(self.node_ids)},
                "nodes": {
                    nid: {
                        "name": self.node_names[i],
                        "http": {
                            "bound_address": [f"127.0.0.1:{self.servers[i].port}"],
                            "publish_address": f"127.0.0.1:{self.servers[i].port}"
                        }
                    }
                    for i, nid in enumerate(self.node_ids)
                }
            })

        async def create_index(request):
            name = request.match_info["index"]
            if name in self.indices:
                return web.json_response(
                    {"error": {"type": "resource_already_exists_exception"}}, status=400
                )
            body = await request.json() if request.can_read_body else {}
            self.indices[name] = self._new_index(body.get("settings", {}))
            return web.json_response({"acknowledged": True, "index": name})

        async def delete_index(request):
            name = request.match_info["index"]
            if self.indices.pop(name, None) is None:
                return web.json_response(
                    {"error": {"type": "index_not_found_exception"}}, status=404
                )
            return web.json_response({"acknowledged": True})

        async def bulk(request):
            name = request.match_info["index"]
            index = self.indices.get(name)
            if index is None:
                index = self.indices[name] = self._new_index({})

            lines = [line for line in (await request.text()).split("\n") if line.strip()]
            items = []
            for action_line, source_line in zip(lines[::2], lines[1::2]):
                doc_id = json.loads(action_line)["index"]["_id"]
                index.pending[doc_id] = json.loads(source_line)
                items.append({"index": {"_index": name, "_id": doc_id, "status": 201}})

            if request.query.get("refresh") == "true":
                index.refresh()
            return web.json_response({"took": 1, "errors": False, "items": items})

        async def sql(request):
            body = await request.json()
            match = COUNT_QUERY.match(body.get("query", ""))
            if match is None:
                return web.json_response({"error": {"type": "parsing_exception"}}, status=400)
            index = self.indices.get(match.group(1))
            if index is None:
                return web.json_response({"error": {"type": "verification_exception"}}, status=400)

            count = len(index.docs)
            if self.partial_counts and node_id not in index.shard_nodes:
                count = 0

            column = {"name": "COUNT(1)", "type": "long"}
            if body.get("mode") == "jdbc":
                column["jdbc_type"] = -5
                column["display_size"] = 20
            response = {"columns": [column], "rows": [[count]]}
            response.update(self.extra_sql_fields)
            return web.json_response(response)

        app = web.Application(middlewares=[record])
        app.router.add_get("/", root)
        app.router.add_get("/_nodes", nodes)
        app.router.add_post("/_xpack/sql", sql)
        app.router.add_put("/{index}", create_index)
        app.router.add_delete("/{index}", delete_index)
        for path in ("/{index}/_bulk", "/{index}/{doc_type}/_bulk"):
            app.router.add_post(path, bulk)
            app.router.add_put(path, bulk)
        return app


def make_config(hosts: List[NodeAddress], **settings) -> Config:
    test_settings = {"index": "test", "doc_type": "test", "seed": 1234}
    test_settings.update(settings)
    return Config.from_dict({
        "cluster": {"hosts": [{"host": h.host, "port": h.port} for h in hosts]},
        "test_settings": test_settings
    })


@pytest_asyncio.fixture
async def fake_cluster():
    """Three-node fake cluster"""
    cluster = FakeCluster()
    await cluster.start()
    yield cluster
    await cluster.close()


@pytest_asyncio.fixture
async def broken_cluster():
    """Fake cluster whose shard-less nodes under-count"""
    cluster = FakeCluster(partial_counts=True)
    await cluster.start()
    yield cluster
    await cluster.close()


@pytest.fixture
def config_for():
    """Build a harness config for a list of hosts"""
    return make_config


@pytest.fixture
def cluster_config(fake_cluster):
    return make_config(fake_cluster.hosts)


@pytest_asyncio.fixture
async def client(cluster_config):
    """Cluster-wide client over every fake node"""
    async with SqlRestClient(cluster_config.cluster) as rest_client:
        yield rest_client


@pytest_asyncio.fixture
async def cluster_factory():
    """Start fake clusters with custom behaviour; all are closed at teardown"""
    started = []

    async def start(**kwargs) -> FakeCluster:
        cluster = FakeCluster(**kwargs)
        await cluster.start()
        started.append(cluster)
        return cluster

    yield start
    for cluster in started:
        await cluster.close()
