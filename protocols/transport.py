"""
HTTPS transport to one Axis device.

Before the first request a probe TLS handshake fetches the certificate the
device presents, and the TrustChainVerifier decides whether it is the
expected device. Only then is the session opened, pinned to the SHA-256
fingerprint of that certificate, so every later request is bound to the
validated identity.

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

import socket
import ssl
import warnings
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

import requests
from cryptography import x509
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning

from config.orchestrator_config import ORCHESTRATOR_CONSTANTS, TrustAnchorConfig
from interfaces.orchestrator_interfaces import JobConfiguration, PAMSecretResolver
from protocols.base import decode_http_status
from protocols.core.types import HttpMethod, NormalizedResponse
from services.system_chain import SystemChain
from services.trust_chain_verifier import TrustChainVerifier, ValidationOutcome
from utils.cert_utils import get_certificate_fingerprint
from utils.errors import IdentityValidationError, TransportError
from utils.logger import OrchestratorLogger
from utils.pam_utils import resolve_pam_field


def parse_client_machine(client_machine: str) -> Tuple[str, int]:
    """
    Splits "host", "host:port", "[v6]:port" or "https://host:port".

    Returns:
        (host, port)

    Raises:
        ValueError: If no host can be read
    """
    value = (client_machine or "").strip()
    if "://" not in value:
        value = f"https://{value}"
    parts = urlsplit(value)
    if not parts.hostname:
        raise ValueError(f"Invalid client machine '{client_machine}'")
    return parts.hostname, parts.port or ORCHESTRATOR_CONSTANTS.DEFAULT_HTTPS_PORT


class FingerprintPinningAdapter(HTTPAdapter):
    """
    requests adapter accepting only the peer certificate with the given
    SHA-256 fingerprint (checked by urllib3 on every connection).
    """

    def __init__(self, fingerprint: str, **kwargs):
        self.fingerprint = fingerprint
        super().__init__(**kwargs)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        pool_kwargs["assert_fingerprint"] = self.fingerprint
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)


class DeviceTransport:
    """
    Authenticated HTTPS session to one device.

    Attributes:
        host / port: device address
        expected_serial: serial the device certificate must carry
        pinned_fingerprint: fingerprint of the accepted certificate (None until trusted)
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        verifier: TrustChainVerifier,
        expected_serial: str,
        logger=None,
    ):
        self.host = host
        self.port = port
        self.verifier = verifier
        self.expected_serial = expected_serial
        self.logger = logger or OrchestratorLogger.get_logger("DeviceTransport")

        self.session = requests.Session()
        self.session.auth = (username or "", password or "")
        # Server authentication is done by establish_trust() plus pinning
        self.session.verify = False
        self.pinned_fingerprint: Optional[str] = None

    @classmethod
    def from_job_configuration(
        cls,
        config: JobConfiguration,
        resolver: Optional[PAMSecretResolver] = None,
        verifier: Optional[TrustChainVerifier] = None,
        logger=None,
    ) -> "DeviceTransport":
        """
        Builds the transport for the store of a job.

        use_ssl is not consulted: the management APIs are only reached over HTTPS.
        """
        logger = logger or OrchestratorLogger.get_logger("DeviceTransport")
        store = config.certificate_store_details
        host, port = parse_client_machine(store.client_machine)

        username = resolve_pam_field(resolver, logger, "Server Username", config.server_username)
        password = resolve_pam_field(resolver, logger, "Server Password", config.server_password)

        if verifier is None:
            verifier = TrustChainVerifier(TrustAnchorConfig.from_store_properties(store.properties))

        return cls(host, port, username, password, verifier, store.store_path, logger=logger)

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"https://{host}:{self.port}"

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def fetch_peer_certificates(self) -> Tuple[Optional[x509.Certificate], List[x509.Certificate]]:
        """
        Completes a TLS handshake without verification and returns what the
        device presented.

        Returns:
            (leaf or None, intermediates)

        Raises:
            TransportError: If the handshake fails
        """
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        try:
            with socket.create_connection(
                (self.host, self.port), timeout=ORCHESTRATOR_CONSTANTS.CONNECT_TIMEOUT_SECONDS
            ) as sock:
                with context.wrap_socket(sock, server_hostname=self.host) as tls:
                    leaf_der = tls.getpeercert(binary_form=True)
                    chain_der = []
                    if hasattr(tls, "get_unverified_chain"):
                        chain_der = tls.get_unverified_chain() or []
        except OSError as e:
            self.logger.error(f"TLS handshake with {self.base_url} failed: {e}")
            raise TransportError(decode_http_status(None, str(e))) from e

        leaf = x509.load_der_x509_certificate(leaf_der) if leaf_der else None
        intermediates = [x509.load_der_x509_certificate(bytes(der)) for der in chain_der[1:]]
        return leaf, intermediates

    def establish_trust(self) -> None:
        """
        Validates the device certificate and pins the session to it.

        Raises:
            TransportError: If the device cannot be reached
            IdentityValidationError: If the certificate is rejected
        """
        leaf, intermediates = self.fetch_peer_certificates()
        system_chain = SystemChain(hostname=self.host, intermediates=intermediates)
        policy_errors = system_chain.evaluate_policy_errors(leaf)
        self.logger.debug(f"System policy errors for {self.host}: {policy_errors!r}")

        result = self.verifier.validate(leaf, system_chain, policy_errors, expected_serial=self.expected_serial)

        if result.outcome is ValidationOutcome.SYSTEM_FAILURE:
            self.logger.error(f"Device identity check could not be performed: {'; '.join(result.reasons)}")
            raise IdentityValidationError(result.reasons) from result.cause
        if not result.accepted:
            for reason in result.reasons:
                self.logger.error(f"Certificate validation error: {reason}")
            raise IdentityValidationError(result.reasons)

        self.pinned_fingerprint = get_certificate_fingerprint(leaf)
        self.session.mount(f"{self.base_url}/", FingerprintPinningAdapter(self.pinned_fingerprint))
        self.logger.info(f"Device {self.host} identity accepted (SHA-256 {self.pinned_fingerprint})")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(
        self,
        method: HttpMethod,
        path: str,
        body: Optional[str] = None,
        content_type: str = "application/json",
    ) -> NormalizedResponse:
        """
        Sends one request to the device.

        Non-2xx statuses are returned (ok=False); only the absence of a
        response raises.

        Raises:
            TransportError: timeout, DNS, connection or TLS failure
            IdentityValidationError: If the device identity is rejected
        """
        if self.pinned_fingerprint is None:
            self.establish_trust()

        url = f"{self.base_url}{path}"
        headers = {"Content-Type": content_type} if body else {}
        self.logger.debug(f"HTTP request URI: {url} ({method.value})")

        try:
            # Peer is pinned by fingerprint
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InsecureRequestWarning)
                response = self.session.request(
                    method.value,
                    url,
                    data=body.encode("utf-8") if body else None,
                    headers=headers,
                    timeout=(
                        ORCHESTRATOR_CONSTANTS.CONNECT_TIMEOUT_SECONDS,
                        ORCHESTRATOR_CONSTANTS.HTTP_TIMEOUT_SECONDS,
                    ),
                )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"HTTP request to {url} failed: {e}")
            raise TransportError(decode_http_status(None, str(e))) from e

        return NormalizedResponse(
            ok=200 <= response.status_code < 300,
            raw=response.text,
            status_code=response.status_code,
            reason=response.reason,
            headers=dict(response.headers),
        )

    def close(self):
        self.session.close()
