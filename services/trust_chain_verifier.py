"""
Trust Chain Verifier Service

Decides whether the TLS certificate presented by an Axis device may be
trusted before any management call is made.

Validation Steps:
1. Axis PKI chain: the leaf is linked to the local trust anchors by
   comparing each child's AKI key identifier with its parent's SKI.
2. Device identity: when the Axis chain holds, the SERIALNUMBER attribute of
   the leaf subject must equal the serial configured for the store. Host name
   matching is not performed on this path, device ID certificates carry no
   routable names.
3. Fallback: when the leaf is not an Axis device ID certificate, the system
   TLS policy errors decide.

The verifier only reads the anchor files and compares certificates in memory;
it never touches the network. Anchor files are re-read on every call.

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cryptography import x509

from config.orchestrator_config import TrustAnchorConfig, TrustAnchorMode
from services.system_chain import PolicyErrors, SystemChain
from utils.cert_utils import (
    decode_subject_lines,
    format_certificate_info,
    get_certificate_aki,
    get_certificate_ski,
    is_self_issued,
    key_id_hex,
    load_certificates_from_pem_file,
)
from utils.logger import OrchestratorLogger

SERIALNUMBER_PREFIX = "SERIALNUMBER="


class ValidationOutcome(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    SYSTEM_FAILURE = "system_failure"


@dataclass
class ValidationResult:
    """
    Outcome of one validation.

    REJECT is an expected refusal (wrong identity, broken chain...).
    SYSTEM_FAILURE means the check itself could not be carried out, e.g.
    an anchor file is missing; ``cause`` holds the original exception.
    """
    outcome: ValidationOutcome
    reasons: List[str] = field(default_factory=list)
    cause: Optional[BaseException] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is ValidationOutcome.ACCEPT

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(ValidationOutcome.ACCEPT)

    @classmethod
    def reject(cls, reasons: List[str]) -> "ValidationResult":
        return cls(ValidationOutcome.REJECT, list(reasons))

    @classmethod
    def system_failure(cls, cause: BaseException, reasons: List[str]) -> "ValidationResult":
        return cls(ValidationOutcome.SYSTEM_FAILURE, list(reasons), cause)


class CertificateErrorContext:
    """
    Collects every failure reason of one validation attempt.
    """

    def __init__(self):
        self.errors: List[str] = []

    def add(self, error: str):
        self.errors.append(error)

    def insert(self, index: int, error: str):
        self.errors.insert(index, error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self):
        return len(self.errors)


class _AnchorStoreRejection(Exception):
    """Anchor files were read but their content cannot form a trust path."""


class TrustChainVerifier:
    """
    Validates device TLS certificates against the Axis PKI trust anchors.

    Stateless apart from the injected configuration; one instance can
    validate any number of handshakes.
    """

    def __init__(self, anchors: TrustAnchorConfig, logger=None):
        """
        Args:
            anchors: location and layout of the trust anchor files
            logger: optional logger (default: TrustChainVerifier logger)
        """
        self.anchors = anchors
        self.logger = logger or OrchestratorLogger.get_logger("TrustChainVerifier")

    def validate(
        self,
        server_cert: Optional[x509.Certificate],
        server_chain: Optional[SystemChain],
        ssl_policy_errors: PolicyErrors,
        expected_serial: Optional[str],
    ) -> ValidationResult:
        """
        Validates the certificate presented by the device.

        Args:
            server_cert: leaf certificate of the handshake
            server_chain: system chain for the handshake (used by the fallback)
            ssl_policy_errors: policy errors computed by the system chain
            expected_serial: device serial number configured for the store

        Returns:
            ValidationResult (ACCEPT, REJECT with reasons, or SYSTEM_FAILURE)
        """
        context = CertificateErrorContext()

        if server_cert is None:
            context.add("certificate is null")
            return ValidationResult.reject(context.errors)
        if server_chain is None:
            context.add("chain is null")
            return ValidationResult.reject(context.errors)

        # Step 1: Axis PKI chain
        self.logger.debug("Check 1/3: verifying the TLS certificate against the Axis PKI trust anchors...")
        try:
            chain = self._build_custom_chain(server_cert)
        except _AnchorStoreRejection as e:
            context.add(str(e))
            self.logger.warning(f"Trust anchor store rejected: {e}")
            return ValidationResult.reject(context.errors)
        except (OSError, ValueError) as e:
            reason = f"Unable to load the trust anchors: {e}"
            self.logger.error(reason)
            return ValidationResult.system_failure(e, [reason])

        if chain is not None and self._verify_aki_ski_chain(chain):
            # Step 2: device identity
            self.logger.debug("Axis certificate chain is valid")
            self.logger.debug("Check 2/3: comparing the SERIALNUMBER subject attribute...")
            return self._check_serial_number(server_cert, expected_serial, context)

        # Step 3: system validation
        self.logger.debug("Skipping check 2/3, certificate does not chain to the Axis PKI")
        self.logger.debug("Check 3/3: verifying the certificate with the system policy...")
        return self._check_policy_errors(server_cert, server_chain, ssl_policy_errors, context)

    # ------------------------------------------------------------------
    # Axis chain
    # ------------------------------------------------------------------

    def _build_custom_chain(self, leaf: x509.Certificate) -> Optional[List[x509.Certificate]]:
        """
        Builds [leaf, intermediates..., root] from the anchor files.

        Returns:
            Candidate chain, or None when the bundle holds no path for the leaf

        Raises:
            _AnchorStoreRejection: anchor content is empty or ambiguous
            OSError: anchor file missing or unreadable
            ValueError: anchor file content cannot be parsed
        """
        if self.anchors.mode is TrustAnchorMode.BUNDLE:
            return self._build_bundle_chain(leaf)

        chain = [leaf]
        intermediate_path = self.anchors.intermediate_path
        if intermediate_path is not None:
            self.logger.debug(f"Loading trusted intermediate certificates from {intermediate_path}")
            intermediates = load_certificates_from_pem_file(intermediate_path)
            if not intermediates:
                raise _AnchorStoreRejection(f"No trusted intermediate certificates found at '{intermediate_path}'")
            self.logger.debug(f"{len(intermediates)} trusted intermediate certificates found")
            chain.extend(intermediates)

        root_path = self.anchors.root_path
        self.logger.debug(f"Loading trusted root certificate from {root_path}")
        roots = load_certificates_from_pem_file(root_path)
        if len(roots) > 1:
            raise _AnchorStoreRejection(f"More than 1 certificate found at '{root_path}'")
        if not roots:
            raise _AnchorStoreRejection(f"No trusted certificates found at '{root_path}'")

        chain.append(roots[0])
        return chain

    def _build_bundle_chain(self, leaf: x509.Certificate) -> Optional[List[x509.Certificate]]:
        bundle_path = self.anchors.bundle_path
        self.logger.debug(f"Loading trust bundle from {bundle_path}")
        bundle = load_certificates_from_pem_file(bundle_path)
        if not bundle:
            raise _AnchorStoreRejection(f"No trusted certificates found at '{bundle_path}'")
        self.logger.debug(f"{len(bundle)} certificates found in trust bundle")

        chain = [leaf]
        current = leaf
        # Each step consumes one bundle certificate, so the walk is bounded
        for _ in range(len(bundle)):
            if is_self_issued(current) and current is not leaf:
                break
            aki = get_certificate_aki(current)
            if aki is None:
                return None
            parent = next(
                (cert for cert in bundle if get_certificate_ski(cert) == aki and cert not in chain),
                None,
            )
            if parent is None:
                self.logger.debug(f"No issuer with SKI {key_id_hex(aki)} in the trust bundle")
                return None
            chain.append(parent)
            current = parent

        if len(chain) < 2 or not is_self_issued(chain[-1]):
            self.logger.debug("Trust bundle path does not end at a self-issued root")
            return None
        return chain

    def _verify_aki_ski_chain(self, chain: List[x509.Certificate]) -> bool:
        for child, parent in zip(chain, chain[1:]):
            ski = get_certificate_ski(parent)
            aki = get_certificate_aki(child)
            self.logger.debug(
                f"Parent '{parent.subject.rfc4514_string()}' SKI {key_id_hex(ski)}, "
                f"child '{child.subject.rfc4514_string()}' AKI {key_id_hex(aki)}"
            )
            if ski is None or aki is None or aki != ski:
                self.logger.debug("Mismatch between parent certificate SKI and child certificate AKI")
                return False

        self.logger.debug("SKIs and AKIs match up the custom certificate chain")
        return True

    def _check_serial_number(
        self, server_cert: x509.Certificate, expected_serial: Optional[str], context: CertificateErrorContext
    ) -> ValidationResult:
        self.logger.debug(f"Device ID certificate:\n{format_certificate_info(server_cert)}")

        for line in decode_subject_lines(server_cert.subject):
            if not line.startswith(SERIALNUMBER_PREFIX):
                continue
            found = line[len(SERIALNUMBER_PREFIX):].strip()
            self.logger.debug(f"Found SERIALNUMBER: {found}")
            if found != expected_serial:
                context.add(
                    f"SERIALNUMBER attribute value '{found}' does NOT match the expected value '{expected_serial}'"
                )
                return ValidationResult.reject(context.errors)
            self.logger.info("Device certificate chain and SERIALNUMBER validated")
            return ValidationResult.accept()

        context.add("SERIALNUMBER attribute was not found in the certificate Subject DN")
        return ValidationResult.reject(context.errors)

    # ------------------------------------------------------------------
    # System fallback
    # ------------------------------------------------------------------

    def _check_policy_errors(
        self,
        server_cert: x509.Certificate,
        server_chain: SystemChain,
        ssl_policy_errors: PolicyErrors,
        context: CertificateErrorContext,
    ) -> ValidationResult:
        if ssl_policy_errors == PolicyErrors.NONE:
            self.logger.info("Certificate chain is valid")
            return ValidationResult.accept()

        if ssl_policy_errors & PolicyErrors.REMOTE_CERTIFICATE_NOT_AVAILABLE:
            context.add("The server did not provide a certificate.")

        if ssl_policy_errors & PolicyErrors.REMOTE_CERTIFICATE_NAME_MISMATCH:
            context.add("The device hostname does not match the CN or SAN in the server's TLS certificate.")

        if ssl_policy_errors & PolicyErrors.REMOTE_CERTIFICATE_CHAIN_ERRORS:
            context.add("Certificate chain is NOT valid.")
            if not server_chain.build(server_cert):
                context.add("Could not build the certificate chain")
            for status in server_chain.chain_status:
                context.add(f"Chain status: {status.status} - {status.info}")

        context.insert(0, "TLS certificate validation failed")
        return ValidationResult.reject(context.errors)
