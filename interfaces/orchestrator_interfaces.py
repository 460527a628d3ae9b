"""
Orchestrator Interfaces - Contracts consumed from the hosting platform

The job runners receive a JobConfiguration and a PAM resolver from the
orchestration platform and answer with a JobResult. Only the fields the
Axis extension actually reads are modelled here.

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PAMSecretResolver(ABC):
    """
    Resolves PAM-protected credentials (server username/password).
    """

    @abstractmethod
    def resolve(self, key: str) -> str:
        """
        Resolve a PAM key into its secret value.

        Args:
            key: PAM key (or the literal value when PAM is not used)

        Returns:
            Secret value
        """
        pass


class CertStoreOperationType(Enum):
    """Management job operation types."""

    UNKNOWN = "Unknown"
    INVENTORY = "Inventory"
    ADD = "Add"
    REMOVE = "Remove"
    CREATE = "Create"
    REENROLLMENT = "Reenrollment"


class JobStatus(Enum):
    """Result status reported back to the platform (2=Success, 3=Warning, 4=Failure)."""

    SUCCESS = 2
    WARNING = 3
    FAILURE = 4


@dataclass
class CertificateStoreDetails:
    """
    Certificate store definition.

    Attributes:
        client_machine: device host name or IP, optionally with ":port"
        store_path: device serial number (checked against the SERIALNUMBER subject attribute)
        properties: custom store properties
    """
    client_machine: str
    store_path: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JobCertificate:
    """
    Certificate attached to a management job.

    Attributes:
        alias: target alias on the device
        contents: base64 DER (or PEM) certificate contents
        private_key_password: set when the platform sends a private key (unsupported)
    """
    alias: str
    contents: str
    private_key_password: Optional[str] = None


@dataclass
class JobConfiguration:
    """
    Context of one job run.
    """
    server_username: Optional[str]
    server_password: Optional[str]
    certificate_store_details: CertificateStoreDetails
    job_history_id: int = 0
    use_ssl: bool = True
    job_certificate: Optional[JobCertificate] = None
    job_properties: Dict[str, Any] = field(default_factory=dict)
    operation_type: CertStoreOperationType = CertStoreOperationType.UNKNOWN
    overwrite: bool = False
    alias: Optional[str] = None


@dataclass
class CurrentInventoryItem:
    """
    One inventory entry submitted back to the platform.
    """
    alias: str
    certificates: List[str]
    private_key_entry: bool
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JobResult:
    """
    Outcome of a job run.
    """
    result: JobStatus
    job_history_id: int
    failure_message: str = ""
