"""
Tests for TransferConfig and EnvManager
"""

import os

import pytest

from dirtransfer.core.config import TransferConfig, configure, get_config
from dirtransfer.core.env import EnvManager


class TestTransferConfig:
    def test_defaults(self):
        config = TransferConfig()
        assert config.concurrent_service_requests == 10
        assert config.download_chunk_size == 256 * 1024
        assert config.metrics is False

    @pytest.mark.parametrize("field", ["concurrent_service_requests", "download_chunk_size"])
    def test_rejects_non_positive_values(self, field):
        with pytest.raises(ValueError, match=field):
            TransferConfig(**{field: 0})

    def test_configure_sets_global(self):
        config = TransferConfig(concurrent_service_requests=3)
        configure(config)
        assert get_config() is config

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DIRTRANSFER_CONCURRENT_SERVICE_REQUESTS", "7")
        monkeypatch.setenv("DIRTRANSFER_REGION", "eu-west-1")
        monkeypatch.setenv("DIRTRANSFER_JSON_LOGS", "true")
        monkeypatch.setenv("DIRTRANSFER_METRICS_ENABLED", "1")

        config = TransferConfig.from_env(load_dotenv=False)

        assert config.concurrent_service_requests == 7
        assert config.region_name == "eu-west-1"
        assert config.json_logs is True
        assert config.metrics is True

    def test_from_env_ignores_malformed_int(self, monkeypatch):
        monkeypatch.setenv("DIRTRANSFER_CONCURRENT_SERVICE_REQUESTS", "many")
        config = TransferConfig.from_env(load_dotenv=False)
        assert config.concurrent_service_requests == 10

    def test_from_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_DT_WIDTH", "12")
        config_file = tmp_path / "dirtransfer.yaml"
        config_file.write_text(
            "transfer:\n"
            "  concurrent_service_requests: ${TEST_DT_WIDTH}\n"
            "  download_chunk_size: ${TEST_DT_CHUNK:-1024}\n"
            "s3:\n"
            "  region: us-east-2\n"
            "  endpoint_url: http://localhost:9000\n"
            "observability:\n"
            "  logging:\n"
            "    level: DEBUG\n"
            "    json: true\n"
            "  metrics:\n"
            "    enabled: true\n"
        )

        config = TransferConfig.from_file(config_file)

        assert config.concurrent_service_requests == 12
        assert config.download_chunk_size == 1024
        assert config.region_name == "us-east-2"
        assert config.endpoint_url == "http://localhost:9000"
        assert config.log_level == "DEBUG"
        assert config.json_logs is True
        assert config.metrics is True

    def test_from_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert TransferConfig.from_file(config_file) == TransferConfig()

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TransferConfig.from_file(tmp_path / "missing.yaml")


class TestEnvManager:
    @pytest.fixture
    def env(self, tmp_path):
        return EnvManager(project_root=tmp_path, auto_load=False)

    def test_substitute_plain_and_default(self, env, monkeypatch):
        monkeypatch.setenv("TEST_DT_BUCKET", "archive")
        monkeypatch.delenv("TEST_DT_MISSING", raising=False)

        assert env.substitute("${TEST_DT_BUCKET}/daily") == "archive/daily"
        assert env.substitute("${TEST_DT_MISSING:-fallback}") == "fallback"
        assert env.substitute("${TEST_DT_MISSING}") == "${TEST_DT_MISSING}"

    def test_substitute_required_missing(self, env, monkeypatch):
        monkeypatch.delenv("TEST_DT_MISSING", raising=False)
        with pytest.raises(ValueError, match="bucket required"):
            env.substitute("${TEST_DT_MISSING:?bucket required}")

    def test_substitute_dict_recurses(self, env, monkeypatch):
        monkeypatch.setenv("TEST_DT_REGION", "eu-north-1")
        data = {"s3": {"region": "${TEST_DT_REGION}", "tags": ["${TEST_DT_REGION}", 3]}}
        assert env.substitute_dict(data) == {
            "s3": {"region": "eu-north-1", "tags": ["eu-north-1", 3]}
        }

    def test_typed_getters(self, env, monkeypatch):
        monkeypatch.setenv("TEST_DT_FLAG", "yes")
        monkeypatch.setenv("TEST_DT_NUM", "5")
        assert env.get_bool("TEST_DT_FLAG") is True
        assert env.get_int("TEST_DT_NUM") == 5
        assert env.get_int("TEST_DT_NOPE", 9) == 9

    def test_load_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_DT_FROM_FILE", raising=False)
        (tmp_path / ".env").write_text("TEST_DT_FROM_FILE=hello\n")

        env = EnvManager(project_root=tmp_path, auto_load=False)
        assert env.load() is True
        assert os.environ["TEST_DT_FROM_FILE"] == "hello"
        os.environ.pop("TEST_DT_FROM_FILE")
