"""
Unit tests for ServerConfig and command-line handling.
"""

import pytest

from assetserver.config import ServerConfig
from assetserver.__main__ import build_parser, config_from_args


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.port == 14000
        assert config.clear_cache_path == "/clearcache"
        assert config.html_cache_control == "no-cache"
        assert config.asset_cache_control == "public, max-age=31536000, immutable"

    def test_valid(self, tmp_path):
        ServerConfig(root_dir=str(tmp_path)).validate()

    def test_root_path_resolved(self, tmp_path):
        config = ServerConfig(root_dir=str(tmp_path / "a" / ".."))
        assert config.root_path == tmp_path.resolve()

    @pytest.mark.parametrize("overrides", [
        {"port": 70000},
        {"min_workers": 0},
        {"min_workers": 8, "max_workers": 4},
        {"queue_size": 0},
        {"timeout": 0},
        {"compression_level": 10},
        {"brotli_quality": 12},
        {"clear_cache_path": "clearcache"},
        {"log_format": "xml"},
    ])
    def test_invalid(self, tmp_path, overrides):
        with pytest.raises(ValueError):
            ServerConfig(root_dir=str(tmp_path), **overrides).validate()

    def test_missing_root(self, tmp_path):
        with pytest.raises(ValueError):
            ServerConfig(root_dir=str(tmp_path / "missing")).validate()

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASSET_HOST", "127.0.0.1")
        monkeypatch.setenv("ASSET_PORT", "9000")
        monkeypatch.setenv("ASSET_ROOT", str(tmp_path))
        monkeypatch.setenv("ASSET_WORKERS", "2")
        monkeypatch.setenv("ASSET_CLEAR_CACHE", "0")
        monkeypatch.setenv("ASSET_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.root_dir == str(tmp_path)
        assert config.max_workers == 2
        assert config.min_workers == 2
        assert config.enable_clear_cache is False
        assert config.log_format == "json"
        config.validate()

    def test_from_env_defaults(self, monkeypatch):
        for name in ("ASSET_HOST", "ASSET_PORT", "ASSET_ROOT", "ASSET_WORKERS",
                     "ASSET_TIMEOUT", "ASSET_CLEAR_CACHE", "ASSET_LOG_LEVEL",
                     "ASSET_LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        assert ServerConfig.from_env() == ServerConfig()


class TestCommandLine:
    """Flags layered over the environment."""

    def test_flags_override_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASSET_PORT", "9000")
        args = build_parser().parse_args([
            "--port", "8080",
            "--root", str(tmp_path),
            "--workers", "3",
            "--no-clear-cache",
            "--log-format", "json",
        ])

        config = config_from_args(args)

        assert config.port == 8080
        assert config.root_dir == str(tmp_path)
        assert config.max_workers == 3
        assert config.min_workers == 3
        assert config.enable_clear_cache is False
        assert config.log_format == "json"

    def test_env_used_without_flags(self, monkeypatch):
        monkeypatch.setenv("ASSET_PORT", "9000")
        config = config_from_args(build_parser().parse_args([]))
        assert config.port == 9000
