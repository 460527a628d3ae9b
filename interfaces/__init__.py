"""
Interfaces Package

Contracts consumed from (and returned to) the orchestration platform.
"""

from .orchestrator_interfaces import (
    CertificateStoreDetails,
    CertStoreOperationType,
    CurrentInventoryItem,
    JobCertificate,
    JobConfiguration,
    JobResult,
    JobStatus,
    PAMSecretResolver,
)

__all__ = [
    "CertificateStoreDetails",
    "CertStoreOperationType",
    "CurrentInventoryItem",
    "JobCertificate",
    "JobConfiguration",
    "JobResult",
    "JobStatus",
    "PAMSecretResolver",
]
