"""
Orchestrator Configuration - Endpoints, paths and shared constants

Centralizes the Axis device API entry points, the trust anchor file locations
and the timeouts used by every job. Changing a value here applies it to the
whole extension.

Usage:
    from config.orchestrator_config import AXIS_API, TrustAnchorConfig

    resource = f"{AXIS_API.REST_ENTRY_POINT}/certificates"
    anchors = TrustAnchorConfig.split_from_directory(TRUST_ANCHOR_PATHS.BASE)

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


@dataclass(frozen=True)
class AxisApiPaths:
    """
    Entry points and wire identifiers of the three Axis management APIs.

    Attributes:
        REST_ENTRY_POINT: VAPIX Certificate Management API (AXIS OS 11 and 12)
        SOAP_ENTRY_POINT: legacy certificate web service (HTTPS and IEEE 802.1X bindings)
        CGI_ENTRY_POINT: MQTT client API
        HTTPS_ALIAS_TAG: XML tag holding the alias bound to the web server
        IEEE_ALIAS_TAG: XML tag holding the alias bound to IEEE 802.1X
        MQTT_ALIAS_KEY: JSON key holding the alias bound to the MQTT client
        CERT_USAGE_PARAM: inventory entry parameter carrying the certificate usage
    """
    REST_ENTRY_POINT: str = "/config/rest/cert/v1beta"
    SOAP_ENTRY_POINT: str = "/vapix/services"
    CGI_ENTRY_POINT: str = "/axis-cgi/mqtt/client.cgi"

    HTTPS_ALIAS_TAG: str = "acert:Id"
    IEEE_ALIAS_TAG: str = "tt:CertificateID"
    MQTT_ALIAS_KEY: str = "clientCertID"

    SOAP_ENVELOPE_NS: str = "http://www.w3.org/2003/05/soap-envelope"

    CERT_USAGE_PARAM: str = "CertUsage"


AXIS_API = AxisApiPaths()


@dataclass(frozen=True)
class TrustAnchorPaths:
    """
    Default locations of the Axis PKI trust anchors.

    The 'Files' directory ships next to the extension; AXIS_TRUST_ANCHOR_DIR
    overrides it for field deployments that keep the anchors elsewhere.
    """
    BASE: Path = Path(os.environ.get("AXIS_TRUST_ANCHOR_DIR", "./Files"))
    ROOT_FILENAME: str = "Axis.Root"
    INTERMEDIATE_FILENAME: str = "Axis.Intermediate"
    BUNDLE_FILENAME: str = "Axis.Trust"


TRUST_ANCHOR_PATHS = TrustAnchorPaths()


@dataclass(frozen=True)
class OrchestratorConstants:
    """
    Constants shared by the transport, the adapters and the jobs.
    """
    # HTTP (seconds)
    CONNECT_TIMEOUT_SECONDS: float = 10.0
    HTTP_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_HTTPS_PORT: int = 443

    # PEM formatting
    PEM_LINE_LENGTH: int = 64

    # Logging
    LOG_DIR: Optional[str] = os.environ.get("AXIS_ORCHESTRATOR_LOG_DIR")
    LOG_LEVEL_ENV: str = "AXIS_ORCHESTRATOR_LOG_LEVEL"


ORCHESTRATOR_CONSTANTS = OrchestratorConstants()


def get_log_level(default: int = logging.INFO) -> int:
    """
    Reads the log level from AXIS_ORCHESTRATOR_LOG_LEVEL.

    Args:
        default: level used when the variable is unset or unknown

    Returns:
        logging level as int
    """
    name = os.environ.get(ORCHESTRATOR_CONSTANTS.LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


class TrustAnchorMode(Enum):
    """Layout of the trust anchor files on disk."""

    SPLIT = "split"  # Axis.Root + Axis.Intermediate
    BUNDLE = "bundle"  # single Axis.Trust bundle


@dataclass
class TrustAnchorConfig:
    """
    Trust anchor locations injected into the TrustChainVerifier.

    Attributes:
        mode: SPLIT (root file + intermediate file) or BUNDLE (flat bundle)
        root_path: root certificate file (SPLIT only, exactly one certificate)
        intermediate_path: intermediate certificates file (SPLIT only)
        bundle_path: flat trust bundle (BUNDLE only)
    """
    mode: TrustAnchorMode
    root_path: Optional[Path] = None
    intermediate_path: Optional[Path] = None
    bundle_path: Optional[Path] = None

    def __post_init__(self):
        if self.mode is TrustAnchorMode.SPLIT and self.root_path is None:
            raise ValueError("SPLIT trust anchor mode requires a root certificate path")
        if self.mode is TrustAnchorMode.BUNDLE and self.bundle_path is None:
            raise ValueError("BUNDLE trust anchor mode requires a trust bundle path")

    @classmethod
    def split(cls, root_path, intermediate_path=None) -> "TrustAnchorConfig":
        return cls(
            mode=TrustAnchorMode.SPLIT,
            root_path=Path(root_path),
            intermediate_path=Path(intermediate_path) if intermediate_path else None,
        )

    @classmethod
    def bundle(cls, bundle_path) -> "TrustAnchorConfig":
        return cls(mode=TrustAnchorMode.BUNDLE, bundle_path=Path(bundle_path))

    @classmethod
    def split_from_directory(cls, directory=None) -> "TrustAnchorConfig":
        base = Path(directory) if directory else TRUST_ANCHOR_PATHS.BASE
        return cls.split(
            base / TRUST_ANCHOR_PATHS.ROOT_FILENAME,
            base / TRUST_ANCHOR_PATHS.INTERMEDIATE_FILENAME,
        )

    @classmethod
    def bundle_from_directory(cls, directory=None) -> "TrustAnchorConfig":
        base = Path(directory) if directory else TRUST_ANCHOR_PATHS.BASE
        return cls.bundle(base / TRUST_ANCHOR_PATHS.BUNDLE_FILENAME)

    @classmethod
    def from_store_properties(cls, properties: Optional[Dict] = None) -> "TrustAnchorConfig":
        """
        Builds the configuration from the certificate store custom properties.

        Recognized properties:
            TrustAnchorMode: "split" (default) or "bundle"
            TrustAnchorDirectory: directory holding the anchor files

        Args:
            properties: store properties (may be None)

        Returns:
            TrustAnchorConfig
        """
        properties = properties or {}
        directory = properties.get("TrustAnchorDirectory") or None
        mode = str(properties.get("TrustAnchorMode") or TrustAnchorMode.SPLIT.value).lower()

        try:
            anchor_mode = TrustAnchorMode(mode)
        except ValueError:
            raise ValueError(
                f"Unknown TrustAnchorMode '{mode}' (expected 'split' or 'bundle')"
            ) from None

        if anchor_mode is TrustAnchorMode.BUNDLE:
            return cls.bundle_from_directory(directory)
        return cls.split_from_directory(directory)
