from contextlib import contextmanager
from typing import List, Optional, Union

from interfaces.orchestrator_interfaces import JobConfiguration, PAMSecretResolver
from protocols.cgi_adapter import CgiAdapter
from protocols.core.types import (
    SUPPORTED_KEY_TYPES,
    CACertificate,
    CertificateUsage,
    DeviceCertificate,
    Keystore,
)
from protocols.rest_adapter import RestAdapter
from protocols.soap_adapter import SoapAdapter
from protocols.templates import RequestTemplates
from protocols.transport import DeviceTransport
from services.trust_chain_verifier import TrustChainVerifier
from utils.cert_utils import certificate_to_pem, is_ca_certificate, load_certificate_any
from utils.errors import OrchestratorError, PolicyRejection
from utils.logger import OrchestratorLogger, flatten_exception


class DeviceApiClient:
    """
    Device API Client - single entry point to one Axis camera

    Composes the device transport (identity check + pinning), the REST
    adapter for inventory and enrollment, and the SOAP/CGI adapters for the
    usage bindings.

    Every failure leaves this class as one of the utils.errors classes with
    ``operation`` set to the failing call; the original class and cause are
    kept so callers can still tell them apart.

    Usage dispatch:
    - HTTPS, IEEE802.X -> SOAP
    - MQTT -> CGI
    - anything else -> PolicyRejection
    """

    def __init__(self, transport, templates: Optional[RequestTemplates] = None, logger=None):
        """
        Initialize the client.

        Args:
            transport: DeviceTransport (or any object with the same request() contract)
            templates: SOAP/CGI request templates (default: bundled templates)
            logger: optional logger
        """
        self.transport = transport
        self.logger = logger or OrchestratorLogger.get_logger("DeviceApiClient")

        templates = templates or RequestTemplates()
        self.rest = RestAdapter(transport)
        self.soap = SoapAdapter(transport, templates)
        self.cgi = CgiAdapter(transport, templates)

        self._binding_adapters = {
            CertificateUsage.HTTPS: self.soap,
            CertificateUsage.IEEE8021X: self.soap,
            CertificateUsage.MQTT: self.cgi,
        }

    @classmethod
    def from_job_configuration(
        cls,
        config: JobConfiguration,
        resolver: Optional[PAMSecretResolver] = None,
        verifier: Optional[TrustChainVerifier] = None,
        templates: Optional[RequestTemplates] = None,
    ) -> "DeviceApiClient":
        transport = DeviceTransport.from_job_configuration(config, resolver=resolver, verifier=verifier)
        return cls(transport, templates=templates)

    def close(self):
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @contextmanager
    def _operation(self, name: str):
        self.logger.debug(f"{name} started")
        try:
            yield
        except OrchestratorError as e:
            self.logger.error(f"Error in {name}: {flatten_exception(e)}")
            e.add_context(name)
            raise
        self.logger.debug(f"{name} completed")

    def bindable_usages(self) -> List[CertificateUsage]:
        return list(self._binding_adapters)

    def _binding_adapter(self, usage: CertificateUsage):
        adapter = self._binding_adapters.get(usage)
        if adapter is None:
            raise PolicyRejection(f"Certificate usage '{usage.label}' cannot be bound to a certificate")
        return adapter

    # ========================================================================
    # INVENTORY
    # ========================================================================

    def list_ca_certificates(self) -> List[CACertificate]:
        with self._operation("ListCaCertificates"):
            return self.rest.list_ca_certificates()

    def list_certificates(self) -> List[DeviceCertificate]:
        with self._operation("ListCertificates"):
            return self.rest.list_certificates()

    def get_default_keystore(self) -> Keystore:
        with self._operation("GetDefaultKeystore"):
            keystore = self.rest.get_default_keystore()
            self.logger.debug(f"Default keystore: {keystore.value}")
            return keystore

    # ========================================================================
    # ENROLLMENT
    # ========================================================================

    def create_self_signed_certificate(
        self,
        alias: str,
        key_type: str,
        keystore: Union[Keystore, str],
        subject: str,
        sans: Optional[List[str]] = None,
    ) -> None:
        """
        Creates a self-signed certificate (and its private key) on the device.

        Args:
            alias: new certificate alias
            key_type: device key type, see map_key_type()
            keystore: keystore for the private key
            subject: subject DN
            sans: subject alternative names ("DNS:cam.example.com", "IP:10.0.0.5")

        Raises:
            PolicyRejection: unknown key type or keystore (no request is sent)
        """
        with self._operation("CreateSelfSignedCertificate"):
            if key_type not in SUPPORTED_KEY_TYPES:
                raise PolicyRejection(
                    f"Key type '{key_type}' does not correspond to a valid key algorithm and key size on the device"
                )
            if not isinstance(keystore, Keystore):
                try:
                    keystore = Keystore.from_wire(keystore)
                except ValueError as e:
                    raise PolicyRejection(str(e)) from e

            self.rest.create_self_signed_certificate(alias, key_type, keystore, subject, sans or [])
            self.logger.info(f"Self-signed certificate '{alias}' ({key_type}) created in {keystore.value}")

    def obtain_csr(self, alias: str) -> str:
        with self._operation("ObtainCSR"):
            return self.rest.obtain_csr(alias)

    def replace_certificate(self, alias: str, pem_certificate: str) -> None:
        with self._operation("ReplaceCertificate"):
            self.logger.debug(f"Replacing certificate '{alias}'")
            self.rest.replace_certificate(alias, pem_certificate)

    # ========================================================================
    # TRUST STORE
    # ========================================================================

    def add_ca_certificate(self, alias: str, certificate: Union[str, bytes], check_alias: bool = True) -> None:
        """
        Installs a CA certificate in the device trust store.

        Args:
            alias: alias for the new CA certificate
            certificate: PEM text, DER bytes or base64 DER
            check_alias: list the device CA certificates first and refuse an
                alias already in use (off when the caller has just checked)

        Raises:
            PolicyRejection: end-entity certificate or alias already in use
        """
        with self._operation("AddCaCertificate"):
            parsed = self._parse_ca_certificate(alias, certificate)

            if check_alias and any(ca.alias == alias for ca in self.rest.list_ca_certificates()):
                raise PolicyRejection(f"Alias '{alias}' already exists among the device CA certificates")

            self.rest.add_ca_certificate(alias, certificate_to_pem(parsed))
            self.logger.info(f"CA certificate '{alias}' added")

    def remove_ca_certificate(self, alias: str, certificate: Optional[Union[str, bytes]] = None) -> None:
        with self._operation("RemoveCaCertificate"):
            if certificate is not None:
                self._parse_ca_certificate(alias, certificate)
            self.rest.remove_ca_certificate(alias)
            self.logger.info(f"CA certificate '{alias}' removed")

    @staticmethod
    def _parse_ca_certificate(alias: str, certificate: Union[str, bytes]):
        try:
            parsed = load_certificate_any(certificate)
        except ValueError as e:
            raise PolicyRejection(f"Certificate '{alias}' cannot be parsed: {e}") from e
        if not is_ca_certificate(parsed):
            raise PolicyRejection(
                f"Certificate '{alias}' is not a CA certificate (basicConstraints CA:true is missing)"
            )
        return parsed

    # ========================================================================
    # USAGE BINDINGS
    # ========================================================================

    def get_usage_binding(self, usage: CertificateUsage) -> str:
        """
        Returns the alias bound to usage ("" when nothing is bound).
        """
        with self._operation(f"GetUsageBinding({usage.label})"):
            alias = self._binding_adapter(usage).get_usage_binding(usage)
            self.logger.debug(f"Bound certificate alias for '{usage.label}': {alias}")
            return alias

    def set_usage_binding(self, alias: str, usage: CertificateUsage) -> None:
        with self._operation(f"SetUsageBinding({usage.label})"):
            self._binding_adapter(usage).set_usage_binding(alias, usage)
            self.logger.info(f"Certificate '{alias}' bound to '{usage.label}'")
