"""
Axis Device Core Types and Constants

Defines the enumerations, data model and key-type mapping shared by the
protocol adapters, the device client and the jobs.

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ============================================================================
# CONSTANTS
# ============================================================================

# Empty alias returned by a binding lookup when no certificate is bound
UNBOUND_ALIAS = ""

# Key type returned by map_key_type for unsupported algorithm/size pairs
UNKNOWN_KEY_TYPE = "UNKNOWN"

# (algorithm, size) -> device key type
_KEY_TYPE_MAP = {
    ("RSA", "2048"): "RSA-2048",
    ("RSA", "4096"): "RSA-4096",
    ("ECP", "256"): "EC-P256",
    ("ECP", "384"): "EC-P384",
    ("ECP", "521"): "EC-P521",
}

SUPPORTED_KEY_TYPES = frozenset(_KEY_TYPE_MAP.values())


# ============================================================================
# ENUMERATIONS
# ============================================================================


class Keystore(Enum):
    """
    Device keystores holding the private keys.

    More keystores may exist depending on the camera model; unknown values
    are rejected when parsing.
    """

    TEE = "TEE0"  # Trusted execution environment
    SECURE_ELEMENT = "SE0"

    @classmethod
    def from_wire(cls, value: Any) -> "Keystore":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown keystore '{value}' (expected TEE0 or SE0)") from None


class CertificateUsage(Enum):
    """
    What a certificate is used for on the device.

    The value is the label of the "Certificate Usage" inventory parameter and
    must match the platform configuration exactly.
    """

    HTTPS = "HTTPS"
    IEEE8021X = "IEEE802.X"
    MQTT = "MQTT"
    TRUST = "Trust"
    UNBOUND = "Other"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> "CertificateUsage":
        """
        Maps an inventory label back to the usage.

        Raises:
            ValueError: If the label is not one of the configured labels
        """
        for usage in cls:
            if usage.value == label:
                return usage
        raise ValueError(f"No certificate usage defined for '{label}'.")


class ApiType(Enum):
    """Device management APIs."""

    REST = "REST"  # VAPIX Certificate Management API
    SOAP = "SOAP"  # HTTPS and IEEE 802.1X bindings
    CGI = "CGI"  # MQTT client API


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"


# ============================================================================
# DATA MODEL
# ============================================================================


@dataclass
class DeviceCertificate:
    """
    Client certificate stored on the device.

    The private key never leaves the keystore; only the PEM is known here.
    """
    alias: str
    pem: str
    keystore: Keystore
    usage_binding: CertificateUsage = CertificateUsage.UNBOUND


@dataclass
class CACertificate:
    """Trust certificate installed on the device."""
    alias: str
    pem: str


@dataclass
class MqttClientConfig:
    """
    MQTT client snapshot read from getClientStatus before a binding write.
    """
    api_version: str
    host: str
    protocol: str = "ssl"
    client_id: str = ""
    clean_session: bool = False
    validate_server_cert: bool = False
    client_cert_id: str = UNBOUND_ALIAS


@dataclass
class ApiEnvelope:
    """
    Decoded response envelope, common to the three APIs.

    Attributes:
        ok: True when the API reported success
        value: payload on success (REST data, CGI document, SOAP root element)
        error_code: native error code on failure
        error_message: native error message on failure
        detail: optional detail (SOAP Fault Detail child name)
    """
    ok: bool
    value: Any = None
    error_code: Any = None
    error_message: Optional[str] = None
    detail: Optional[str] = None


@dataclass
class NormalizedResponse:
    """
    HTTP response reduced to what the adapters need.
    """
    ok: bool
    raw: str = ""
    status_code: Optional[int] = None
    reason: Optional[str] = None
    headers: dict = field(default_factory=dict)


def map_key_type(algorithm: Optional[str], size: Any) -> str:
    """
    Maps the platform key algorithm and size to the device key type.

    Args:
        algorithm: "RSA" or "ECP"
        size: key size (str or int)

    Returns:
        Device key type (e.g. "EC-P256"), or UNKNOWN_KEY_TYPE

    Example:
        >>> map_key_type("ECP", 384)
        'EC-P384'
    """
    return _KEY_TYPE_MAP.get((str(algorithm), str(size)), UNKNOWN_KEY_TYPE)
