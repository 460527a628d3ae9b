"""
Axis Device Protocols

Adapters for the three Axis management APIs and the HTTPS transport they
share.

Module Structure:
- core/: data model, enumerations and key-type mapping
- base: adapter contract and HTTP status decoding
- rest_adapter / soap_adapter / cgi_adapter: per-API request and response handling
- templates: SOAP/CGI request body templates
- transport: device HTTPS session with identity check and pinning
"""

from .base import ProtocolAdapter, decode_http_status
from .cgi_adapter import CgiAdapter
from .rest_adapter import RestAdapter
from .soap_adapter import SoapAdapter, extract_alias
from .templates import RequestTemplates
from .transport import DeviceTransport, FingerprintPinningAdapter, parse_client_machine

__all__ = [
    "CgiAdapter",
    "DeviceTransport",
    "FingerprintPinningAdapter",
    "ProtocolAdapter",
    "RequestTemplates",
    "RestAdapter",
    "SoapAdapter",
    "decode_http_status",
    "extract_alias",
    "parse_client_machine",
]
