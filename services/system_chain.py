"""
System Chain Service

Conventional (web PKI) evaluation of a device certificate against the system
CA bundle. It produces the TLS policy-error flags and the per-certificate
chain-status entries that the TrustChainVerifier falls back to when the
certificate does not come off the Axis PKI.

Everything happens in memory: the CA bundle is read from disk and the path is
built with cryptography's verification API, no network I/O.

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

import ipaddress
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntFlag
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Sequence

import requests.certs
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError


class PolicyErrors(IntFlag):
    """
    TLS policy errors of a handshake; a device may trigger several at once.
    """

    NONE = 0
    REMOTE_CERTIFICATE_NOT_AVAILABLE = 1
    REMOTE_CERTIFICATE_NAME_MISMATCH = 2
    REMOTE_CERTIFICATE_CHAIN_ERRORS = 4


@dataclass
class ChainStatus:
    """One chain-status entry reported by SystemChain.build()."""
    status: str
    info: str

    def __str__(self):
        return f"{self.status} - {self.info}"


@lru_cache(maxsize=4)
def _load_trust_roots(bundle_path: str) -> tuple:
    return tuple(x509.load_pem_x509_certificates(Path(bundle_path).read_bytes()))


def _verification_subject(certificate: x509.Certificate):
    """
    Picks a name present in the certificate SAN, so that path building can
    be judged independently of the host name that was dialled.
    """
    try:
        san = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return None

    for dns_name in san.get_values_for_type(x509.DNSName):
        if not dns_name.startswith("*."):
            return x509.DNSName(dns_name)
    ip_addresses = san.get_values_for_type(x509.IPAddress)
    if ip_addresses:
        return x509.IPAddress(ip_addresses[0])
    return None


def _dns_name_matches(pattern: str, hostname: str) -> bool:
    pattern = pattern.lower().rstrip(".")
    hostname = hostname.lower().rstrip(".")
    if pattern.startswith("*."):
        # Wildcard covers exactly one left-most label
        head, _, tail = hostname.partition(".")
        return bool(head) and tail == pattern[2:]
    return pattern == hostname


def hostname_matches(certificate: x509.Certificate, hostname: str) -> bool:
    """
    Checks the dialled host name (or IP) against the certificate SAN.

    The subject CN is only consulted when the certificate carries no SAN
    extension at all.

    Args:
        certificate: server certificate
        hostname: host name or IP literal used to connect

    Returns:
        True if one of the names matches
    """
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        address = None

    try:
        san = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None

    if san is not None:
        if address is not None:
            return address in san.get_values_for_type(x509.IPAddress)
        return any(_dns_name_matches(name, hostname) for name in san.get_values_for_type(x509.DNSName))

    for attribute in certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME):
        value = str(attribute.value)
        if address is not None:
            if value == str(address):
                return True
        elif _dns_name_matches(value, hostname):
            return True
    return False


class SystemChain:
    """
    Chain builder backed by the system CA bundle.

    Attributes:
        hostname: host name (or IP) the transport connected to
        intermediates: certificates sent by the peer after the leaf
        chain_status: entries produced by the last build()
        elements: verified chain [leaf, ..., root] of the last successful build()
    """

    def __init__(
        self,
        hostname: Optional[str] = None,
        intermediates: Optional[Sequence[x509.Certificate]] = None,
        trust_roots: Optional[Sequence[x509.Certificate]] = None,
        ca_bundle_path: Optional[str] = None,
    ):
        """
        Args:
            hostname: host the certificate was presented for
            intermediates: untrusted intermediates presented in the handshake
            trust_roots: explicit trust roots (default: system CA bundle)
            ca_bundle_path: PEM CA bundle (default: requests' certifi bundle)
        """
        self.hostname = hostname
        self.intermediates = list(intermediates or [])
        self._trust_roots = list(trust_roots) if trust_roots is not None else None
        self._ca_bundle_path = ca_bundle_path or requests.certs.where()
        self.chain_status: List[ChainStatus] = []
        self.elements: List[x509.Certificate] = []

    def trust_roots(self) -> List[x509.Certificate]:
        if self._trust_roots is not None:
            return self._trust_roots
        return list(_load_trust_roots(self._ca_bundle_path))

    def build(self, certificate: x509.Certificate) -> bool:
        """
        Builds and verifies the path of certificate to a system trust root.

        chain_status is reset and then filled with one entry per problem:
        NotTimeValid for every expired or not-yet-valid certificate, and the
        verifier error when no valid path exists.

        Args:
            certificate: leaf certificate

        Returns:
            True if a valid path was built
        """
        self.chain_status = []
        self.elements = []

        now = datetime.now(timezone.utc)
        for cert in [certificate, *self.intermediates]:
            if now < cert.not_valid_before_utc or now > cert.not_valid_after_utc:
                self.chain_status.append(ChainStatus(
                    "NotTimeValid",
                    f"Certificate '{cert.subject.rfc4514_string()}' is outside its validity period "
                    f"({cert.not_valid_before_utc:%Y-%m-%d %H:%M:%S} to {cert.not_valid_after_utc:%Y-%m-%d %H:%M:%S})",
                ))

        roots = self.trust_roots()
        if not roots:
            self.chain_status.append(ChainStatus("UntrustedRoot", "No trusted root certificates are available"))
            return False

        subject = _verification_subject(certificate)
        if subject is None:
            self.chain_status.append(ChainStatus(
                "InvalidExtension", "Certificate has no DNS or IP subject alternative name to build a path for"
            ))
            return False

        try:
            verifier = PolicyBuilder().store(Store(roots)).build_server_verifier(subject)
            self.elements = list(verifier.verify(certificate, self.intermediates))
        except VerificationError as e:
            self.chain_status.append(ChainStatus("PartialChain", str(e)))
            return False
        except ValueError as e:
            # Names the verifier refuses to handle (e.g. "cam_1.local")
            self.chain_status.append(ChainStatus("InvalidExtension", str(e)))
            return False

        return not self.chain_status

    def evaluate_policy_errors(self, certificate: Optional[x509.Certificate]) -> PolicyErrors:
        """
        Computes the TLS policy errors for the presented certificate.

        Name and chain are checked independently, so a certificate can carry
        both NAME_MISMATCH and CHAIN_ERRORS.

        Args:
            certificate: leaf presented by the peer (None if nothing was presented)

        Returns:
            PolicyErrors flags
        """
        if certificate is None:
            return PolicyErrors.REMOTE_CERTIFICATE_NOT_AVAILABLE

        errors = PolicyErrors.NONE
        if self.hostname and not hostname_matches(certificate, self.hostname):
            errors |= PolicyErrors.REMOTE_CERTIFICATE_NAME_MISMATCH
        if not self.build(certificate):
            errors |= PolicyErrors.REMOTE_CERTIFICATE_CHAIN_ERRORS
        return errors
