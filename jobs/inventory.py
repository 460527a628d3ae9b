"""
Inventory job: reports the CA and client certificates of a device.

CA certificates are reported with usage Trust and no private key. Client
certificates are limited to the default keystore and tagged with the usage
they are bound to (HTTPS, IEEE802.X, MQTT, or Other).
"""

from typing import Any, Callable, Dict, List

from config.orchestrator_config import AXIS_API
from interfaces.orchestrator_interfaces import CurrentInventoryItem, JobConfiguration, JobResult
from jobs.job_base import JobRunner
from protocols.core.types import CACertificate, CertificateUsage, DeviceCertificate
from utils.cert_utils import load_certificate_any
from utils.logger import flatten_exception

SubmitInventory = Callable[[List[CurrentInventoryItem]], Any]


def tag_bindings(certificates: List[DeviceCertificate], bindings: Dict[CertificateUsage, str]) -> None:
    """
    Sets usage_binding on each certificate whose alias is bound to a usage.

    Args:
        certificates: client certificates (updated in place)
        bindings: usage -> bound alias ("" when unbound)
    """
    by_alias = {alias: usage for usage, alias in bindings.items() if alias}
    for certificate in certificates:
        certificate.usage_binding = by_alias.get(certificate.alias, CertificateUsage.UNBOUND)


class InventoryJob(JobRunner):

    job_name = "Inventory"

    def process(self, config: JobConfiguration, submit_inventory: SubmitInventory) -> JobResult:
        """
        Runs the inventory and submits the items.

        Returns:
            SUCCESS, WARNING if some certificates could not be read, FAILURE otherwise
        """
        store = config.certificate_store_details
        self.logger.info(f"Begin Inventory for client machine {store.client_machine}")

        items: List[CurrentInventoryItem] = []
        warning = False
        try:
            with self.create_client(config) as client:
                self.logger.debug("Retrieving all CA certificates")
                ca_certificates = client.list_ca_certificates()

                self.logger.debug("Retrieving all client certificates")
                certificates = client.list_certificates()

                keystore = client.get_default_keystore()
                self.logger.debug(f"Filtering client certificates to the default keystore {keystore.value}")
                certificates = [c for c in certificates if c.keystore is keystore]

                self.logger.debug("Retrieving the certificate bound to each usage")
                bindings = {usage: client.get_usage_binding(usage) for usage in client.bindable_usages()}
                tag_bindings(certificates, bindings)

            for ca_certificate in ca_certificates:
                try:
                    items.append(self.build_ca_item(ca_certificate))
                except ValueError as e:
                    self.logger.warning(f"Could not read the CA certificate '{ca_certificate.alias}': {e}")
                    warning = True

            for certificate in certificates:
                try:
                    items.append(self.build_client_item(certificate))
                except ValueError as e:
                    self.logger.warning(f"Could not read the client certificate '{certificate.alias}': {e}")
                    warning = True

        except Exception as e:
            self.logger.debug(flatten_exception(e))
            return self.failure(
                config,
                f"Inventory Job Failed During Inventory Item Creation: {e} - Refer to logs for more detailed information.",
            )

        try:
            self.logger.debug(f"Submitting {len(items)} inventory items")
            submit_inventory(items)
        except Exception as e:
            return self.failure(
                config,
                f"Inventory Job Failed During Inventory Item Submission: {e} - Refer to logs for more detailed information.",
            )

        if warning:
            return self.warning(
                config, "Could not fetch 1 or more certificates. Refer to the log for more detailed information."
            )
        return self.success(config)

    @staticmethod
    def build_ca_item(ca_certificate: CACertificate) -> CurrentInventoryItem:
        load_certificate_any(ca_certificate.pem)
        return CurrentInventoryItem(
            alias=ca_certificate.alias,
            certificates=[ca_certificate.pem],
            private_key_entry=False,
            parameters={AXIS_API.CERT_USAGE_PARAM: CertificateUsage.TRUST.label},
        )

    @staticmethod
    def build_client_item(certificate: DeviceCertificate) -> CurrentInventoryItem:
        load_certificate_any(certificate.pem)
        # Private key stays in the device keystore
        return CurrentInventoryItem(
            alias=certificate.alias,
            certificates=[certificate.pem],
            private_key_entry=True,
            parameters={AXIS_API.CERT_USAGE_PARAM: certificate.usage_binding.label},
        )
