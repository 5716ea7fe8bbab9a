"""
Configuration management for the multi-node SQL consistency harness
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Union

@dataclass(frozen=True)
class NodeAddress:
    """Single cluster entry point"""
    host: str
    port: int

    @property
    def signature(self) -> str:
        """host:port form used in the cluster's bound address lists"""
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: Union[str, Dict[str, Any]]) -> "NodeAddress":
        """Build an address from a "host:port" string or a {host, port} mapping"""
        if isinstance(value, dict):
            return cls(host=value['host'], port=int(value['port']))
        host, _, port = value.rpartition(':')
        if not host or not port:
            raise ValueError(f"Expected host:port, got {value!r}")
        return cls(host=host, port=int(port))

@dataclass
class ClusterConfig:
    """Cluster connection data class"""
    hosts: List[NodeAddress]
    scheme: str = "http"
    username: str = ""
    password: str = ""
    timeout_seconds: Optional[float] = None

@dataclass
class HarnessSettings:
    """Scenario settings data class"""
    index: str = "test"
    doc_type: Optional[str] = "test"
    sql_endpoint: str = "/_xpack/sql"
    modes: List[str] = field(default_factory=lambda: ["plain", "jdbc"])
    min_documents: int = 10
    max_documents: int = 100
    seed: Optional[int] = None
    allocation_exclude_setting: str = "routing.allocation.exclude._id"
    results_dir: str = "results"

class Config:
    """Configuration manager"""

    def __init__(self, config_path: str = "config.json"):
        self.config_path = config_path
        self._load_config()

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Config":
        """Build a configuration without touching the filesystem"""
        config = cls.__new__(cls)
        config.config_path = None
        config._apply(config_data)
        return config

    def _load_config(self):
        """Load configuration from file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except FileNotFoundError:
            config_data = self._get_default_config()

        self._apply(config_data)

    def _apply(self, config_data: Dict[str, Any]):
        self.data = config_data
        defaults = self._get_default_config()

        cluster_data = dict(defaults['cluster'])
        cluster_data.update(config_data.get('cluster', {}))
        hosts = [NodeAddress.parse(h) for h in cluster_data.pop('hosts')]
        self.cluster = ClusterConfig(hosts=hosts, **cluster_data)

        self.settings = HarnessSettings(**config_data.get('test_settings', {}))

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            'cluster': {
                'hosts': [
                    {'host': 'localhost', 'port': 9200},
                    {'host': 'localhost', 'port': 9201}
                ],
                'scheme': 'http'
            },
            'test_settings': {
                'index': 'test',
                'doc_type': 'test',
                'sql_endpoint': '/_xpack/sql',
                'modes': ['plain', 'jdbc'],
                'min_documents': 10,
                'max_documents': 100
            }
        }
