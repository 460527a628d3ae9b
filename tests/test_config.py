"""
Test suite for the orchestrator configuration and logger.
"""

import logging
from pathlib import Path

import pytest

from config.orchestrator_config import TrustAnchorConfig, TrustAnchorMode, get_log_level
from protocols.core.types import UNKNOWN_KEY_TYPE, CertificateUsage, Keystore, map_key_type
from utils.logger import OrchestratorLogger


class TestTrustAnchorConfig:

    def test_split_from_directory(self, tmp_path):
        config = TrustAnchorConfig.split_from_directory(tmp_path)

        assert config.mode is TrustAnchorMode.SPLIT
        assert config.root_path == tmp_path / "Axis.Root"
        assert config.intermediate_path == tmp_path / "Axis.Intermediate"

    def test_bundle_from_directory(self, tmp_path):
        config = TrustAnchorConfig.bundle_from_directory(tmp_path)
        assert config.bundle_path == tmp_path / "Axis.Trust"

    def test_split_requires_root(self):
        with pytest.raises(ValueError):
            TrustAnchorConfig(mode=TrustAnchorMode.SPLIT)

    def test_from_store_properties(self, tmp_path):
        config = TrustAnchorConfig.from_store_properties(
            {"TrustAnchorMode": "Bundle", "TrustAnchorDirectory": str(tmp_path)}
        )

        assert config.mode is TrustAnchorMode.BUNDLE
        assert config.bundle_path == Path(tmp_path) / "Axis.Trust"

    def test_default_mode_is_split(self):
        assert TrustAnchorConfig.from_store_properties(None).mode is TrustAnchorMode.SPLIT

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="TrustAnchorMode"):
            TrustAnchorConfig.from_store_properties({"TrustAnchorMode": "chain"})


class TestLogLevel:

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("AXIS_ORCHESTRATOR_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    def test_unknown_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("AXIS_ORCHESTRATOR_LOG_LEVEL", "chatty")
        assert get_log_level(logging.WARNING) == logging.WARNING


class TestOrchestratorLogger:

    def test_cached_per_name(self):
        first = OrchestratorLogger.get_logger("TestConfigLogger", console_output=False)
        assert OrchestratorLogger.get_logger("TestConfigLogger") is first

    def test_set_level_and_clear(self):
        logger = OrchestratorLogger.get_logger("TestLevelLogger", console_output=False)
        OrchestratorLogger.set_level("TestLevelLogger", logging.ERROR)
        assert logger.level == logging.ERROR

        OrchestratorLogger.clear_cache()
        assert OrchestratorLogger.get_logger("TestLevelLogger", console_output=False) is not None

    def test_log_file(self, tmp_path):
        logger = OrchestratorLogger.get_logger("TestFileLogger", log_dir=str(tmp_path), console_output=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert "hello" in (tmp_path / "TestFileLogger.log").read_text()


class TestCoreTypes:

    @pytest.mark.parametrize("algorithm,size,expected", [
        ("RSA", "2048", "RSA-2048"),
        ("RSA", 4096, "RSA-4096"),
        ("ECP", "256", "EC-P256"),
        ("ECP", "521", "EC-P521"),
        ("RSA", "1024", UNKNOWN_KEY_TYPE),
        (None, None, UNKNOWN_KEY_TYPE),
    ])
    def test_map_key_type(self, algorithm, size, expected):
        assert map_key_type(algorithm, size) == expected

    def test_usage_labels(self):
        assert CertificateUsage.from_label("IEEE802.X") is CertificateUsage.IEEE8021X
        with pytest.raises(ValueError):
            CertificateUsage.from_label("https")

    def test_keystore_from_wire(self):
        assert Keystore.from_wire("TEE0") is Keystore.TEE
        with pytest.raises(ValueError):
            Keystore.from_wire("tee0")
