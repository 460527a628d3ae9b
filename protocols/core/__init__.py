"""
Axis Device Core Types

Enumerations, data model and the key-type mapping shared by every layer.
"""

from .types import (
    UNBOUND_ALIAS,
    SUPPORTED_KEY_TYPES,
    UNKNOWN_KEY_TYPE,
    ApiEnvelope,
    ApiType,
    CACertificate,
    CertificateUsage,
    DeviceCertificate,
    HttpMethod,
    Keystore,
    MqttClientConfig,
    NormalizedResponse,
    map_key_type,
)

__all__ = [
    "UNBOUND_ALIAS",
    "SUPPORTED_KEY_TYPES",
    "UNKNOWN_KEY_TYPE",
    "ApiEnvelope",
    "ApiType",
    "CACertificate",
    "CertificateUsage",
    "DeviceCertificate",
    "HttpMethod",
    "Keystore",
    "MqttClientConfig",
    "NormalizedResponse",
    "map_key_type",
]
