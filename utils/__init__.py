"""
Utils Package

Contains certificate helpers, the logger, the error taxonomy and PAM helpers.
"""

from .cert_utils import (
    base64_der_to_pem,
    certificate_to_pem,
    decode_subject_lines,
    format_certificate_info,
    get_certificate_aki,
    get_certificate_fingerprint,
    get_certificate_ski,
    is_ca_certificate,
    load_certificate_any,
    load_certificates_from_pem_file,
    validate_csr,
)
from .errors import (
    ApiLogicalError,
    IdentityValidationError,
    OrchestratorError,
    PolicyRejection,
    ProtocolInvariantViolation,
    TransportError,
)
from .logger import OrchestratorLogger, flatten_exception

__all__ = [
    # Certificate utilities
    "base64_der_to_pem",
    "certificate_to_pem",
    "decode_subject_lines",
    "format_certificate_info",
    "get_certificate_aki",
    "get_certificate_fingerprint",
    "get_certificate_ski",
    "is_ca_certificate",
    "load_certificate_any",
    "load_certificates_from_pem_file",
    "validate_csr",
    # Errors
    "ApiLogicalError",
    "IdentityValidationError",
    "OrchestratorError",
    "PolicyRejection",
    "ProtocolInvariantViolation",
    "TransportError",
    # Logging
    "OrchestratorLogger",
    "flatten_exception",
]
