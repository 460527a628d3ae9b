"""
Services Package

Device identity verification: the Axis trust chain verifier and the system
chain fallback.
"""

from .system_chain import ChainStatus, PolicyErrors, SystemChain, hostname_matches
from .trust_chain_verifier import (
    CertificateErrorContext,
    TrustChainVerifier,
    ValidationOutcome,
    ValidationResult,
)

__all__ = [
    "CertificateErrorContext",
    "ChainStatus",
    "PolicyErrors",
    "SystemChain",
    "TrustChainVerifier",
    "ValidationOutcome",
    "ValidationResult",
    "hostname_matches",
]
