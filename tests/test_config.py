"""Tests for configuration loading and validation"""

import json

import pytest

from config import Config, NodeAddress
from utils import ConfigValidator


class TestNodeAddress:
    def test_parses_host_port_string(self):
        assert NodeAddress.parse("10.0.0.5:9201") == NodeAddress("10.0.0.5", 9201)

    def test_parses_mapping(self):
        assert NodeAddress.parse({"host": "es-1", "port": "9200"}) == NodeAddress("es-1", 9200)

    def test_ipv6_literal_keeps_brackets(self):
        address = NodeAddress.parse("[::1]:9200")

        assert address == NodeAddress("[::1]", 9200)
        assert address.signature == "[::1]:9200"

    @pytest.mark.parametrize("value", ["localhost", ":9200", "localhost:"])
    def test_rejects_incomplete_strings(self, value):
        with pytest.raises(ValueError):
            NodeAddress.parse(value)


class TestConfig:
    def test_missing_file_uses_defaults_without_writing(self, tmp_path):
        path = tmp_path / "config.json"

        config = Config(str(path))

        assert config.cluster.hosts == [NodeAddress("localhost", 9200), NodeAddress("localhost", 9201)]
        assert config.settings.index == "test"
        assert config.settings.sql_endpoint == "/_xpack/sql"
        assert config.settings.modes == ["plain", "jdbc"]
        assert config.cluster.timeout_seconds is None
        assert not path.exists()

    def test_loads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "cluster": {"hosts": ["es-0:9200", {"host": "es-1", "port": 9200}], "username": "elastic"},
            "test_settings": {"index": "multinode", "doc_type": None, "seed": 3, "max_documents": 50},
        }))

        config = Config(str(path))

        assert config.cluster.hosts == [NodeAddress("es-0", 9200), NodeAddress("es-1", 9200)]
        assert config.cluster.username == "elastic"
        assert config.cluster.scheme == "http"
        assert config.settings.index == "multinode"
        assert config.settings.doc_type is None
        assert config.settings.seed == 3
        assert config.settings.min_documents == 10
        assert config.settings.max_documents == 50

    def test_unknown_setting_is_an_error(self):
        with pytest.raises(TypeError):
            Config.from_dict({"test_settings": {"shards": 3}})


class TestConfigValidator:
    def test_default_config_is_valid(self, tmp_path):
        config = Config(str(tmp_path / "absent.json"))

        assert ConfigValidator.validate_config(config.data) == []

    def test_reports_each_problem(self):
        issues = ConfigValidator.validate_config({
            "cluster": {
                "hosts": ["es-0", {"host": "", "port": 9200}, {"host": "es-2", "port": 70000}],
                "scheme": "ftp",
                "timeout_seconds": 0,
            },
            "test_settings": {"modes": [], "min_documents": 20, "max_documents": 10, "index": ""},
        })

        assert issues == [
            "Host 0 is not in host:port form: 'es-0'",
            "Missing or empty host for entry 1",
            "Invalid port range for entry 2: 70000",
            "Invalid scheme: ftp",
            "Invalid timeout_seconds in cluster",
            "test_settings.modes must be a non-empty list",
            "Invalid max_documents in test_settings",
            "Empty index name in test_settings",
        ]

    def test_reports_missing_cluster(self):
        assert ConfigValidator.validate_config({}) == ["Missing cluster configuration"]

    def test_reports_empty_host_list(self):
        issues = ConfigValidator.validate_config({"cluster": {"hosts": []}})

        assert issues == ["cluster.hosts must be a non-empty list"]
