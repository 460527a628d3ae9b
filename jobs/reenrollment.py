"""
Reenrollment job: renews a device certificate with an on-device key.

Steps:
1. Read alias, subject, usage, key type/size and SANs from the job
2. Refuse to take over a usage bound to another alias unless overwrite is set
3. Create a self-signed certificate (and key) in the default keystore
4. Fetch and validate the CSR, have the CA sign it
5. Replace the self-signed certificate and bind it to the usage
"""

from typing import Any, Callable, Dict, List
from urllib.parse import parse_qsl

from cryptography import x509

from interfaces.orchestrator_interfaces import JobConfiguration, JobResult
from jobs.job_base import JobRunner
from protocols.core.types import UNBOUND_ALIAS, UNKNOWN_KEY_TYPE, CertificateUsage, map_key_type
from utils.cert_utils import certificate_to_pem, load_certificate_any, validate_csr
from utils.logger import flatten_exception

SubmitReenrollment = Callable[[str], Any]

_SAN_PREFIXES = {
    "dns": "DNS",
    "ip": "IP",
    "ip4": "IP",
    "ip6": "IP",
    "email": "email",
    "rfc822": "email",
    "uri": "URI",
}


def parse_sans(value: str) -> List[str]:
    """
    Converts the SAN job property into device SAN strings.

    Example:
        >>> parse_sans("dns=cam1.example.com&ip4=10.0.0.5")
        ['DNS:cam1.example.com', 'IP:10.0.0.5']

    Raises:
        ValueError: If a SAN type is not supported
    """
    sans = []
    for key, san in parse_qsl(value or "", keep_blank_values=False):
        prefix = _SAN_PREFIXES.get(key.strip().lower())
        if prefix is None:
            raise ValueError(f"Unsupported SAN type '{key}'")
        sans.append(f"{prefix}:{san.strip()}")
    return sans


def _required(properties: Dict[str, Any], name: str) -> str:
    value = properties.get(name)
    if value is None or str(value).strip() == "":
        raise ValueError(f"Missing job property '{name}'")
    return str(value).strip()


class ReenrollmentJob(JobRunner):

    job_name = "Reenrollment"

    def process(self, config: JobConfiguration, submit_reenrollment: SubmitReenrollment) -> JobResult:
        """
        Runs the reenrollment.

        Args:
            config: job configuration
            submit_reenrollment: signs a PEM CSR and returns the certificate
                (x509.Certificate, PEM, DER or base64 DER)
        """
        store = config.certificate_store_details
        self.logger.info(f"Begin Reenrollment for client machine {store.client_machine}")

        try:
            properties = config.job_properties or {}
            alias = config.alias or _required(properties, "Alias")
            subject = _required(properties, "subjectText")
            usage = CertificateUsage.from_label(_required(properties, "CertUsage"))
            key_algorithm = _required(properties, "keyType")
            key_size = _required(properties, "keySize")
            sans = parse_sans(properties.get("SAN") or "")

            key_type = map_key_type(key_algorithm, key_size)
            self.logger.debug(f"Mapped key type: {key_type}")
            if key_type == UNKNOWN_KEY_TYPE:
                return self.failure(
                    config,
                    f"The key algorithm '{key_algorithm}' and key size '{key_size}' selected for reenrollment "
                    f"do not correspond to a valid key algorithm and key size on the device.",
                )

            with self.create_client(config) as client:
                if usage not in client.bindable_usages():
                    return self.failure(
                        config, f"Certificate usage '{usage.label}' cannot be bound to a reenrolled certificate."
                    )

                current = client.get_usage_binding(usage)
                if current not in (UNBOUND_ALIAS, alias) and not config.overwrite:
                    return self.warning(
                        config,
                        f"Certificate '{current}' is already bound to '{usage.label}'. "
                        f"Select overwrite to replace the binding with '{alias}'.",
                    )

                keystore = client.get_default_keystore()
                client.create_self_signed_certificate(alias, key_type, keystore, subject, sans)

                csr = client.obtain_csr(alias)
                self.logger.debug(f"CSR:\n{csr}")
                validate_csr(csr)

                issued = submit_reenrollment(csr)
                pem = self._to_pem(issued)
                self.logger.debug(f"Replacing certificate '{alias}' with:\n{pem}")

                client.replace_certificate(alias, pem)
                client.set_usage_binding(alias, usage)

        except Exception as e:
            self.logger.debug(flatten_exception(e))
            return self.failure(
                config, f"Reenrollment Job Failed: {e} - Refer to logs for more detailed information."
            )

        return self.success(config)

    @staticmethod
    def _to_pem(issued) -> str:
        if isinstance(issued, x509.Certificate):
            return certificate_to_pem(issued)
        if issued is None:
            raise ValueError("No certificate was returned for the CSR")
        return certificate_to_pem(load_certificate_any(issued))
