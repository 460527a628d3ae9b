"""
Management job: adds or removes CA certificates in the device trust store.

Client certificates are never managed this way; they are created on the
device by the reenrollment job.
"""

from interfaces.orchestrator_interfaces import CertStoreOperationType, JobConfiguration, JobResult
from jobs.job_base import JobRunner
from utils.cert_utils import base64_der_to_pem, is_ca_certificate, load_certificate_any
from utils.logger import flatten_exception


class ManagementJob(JobRunner):

    job_name = "Management"

    def process(self, config: JobConfiguration) -> JobResult:
        operation = config.operation_type
        store = config.certificate_store_details
        self.logger.info(f"Begin Management-{operation.value} for client machine {store.client_machine}")

        try:
            if operation is CertStoreOperationType.ADD:
                return self._add(config)
            if operation is CertStoreOperationType.REMOVE:
                return self._remove(config)
            return self.failure(
                config,
                f"Site {store.store_path} on server {store.client_machine}: Unsupported operation: {operation.value}",
            )
        except Exception as e:
            self.logger.debug(flatten_exception(e))
            return self.failure(
                config,
                f"Management Job Failed During '{operation.value}' Operation: {e} - "
                f"Refer to logs for more detailed information.",
            )

    def _job_certificate(self, config: JobConfiguration):
        job_certificate = config.job_certificate
        if job_certificate is None or not job_certificate.contents:
            raise ValueError("No certificate was provided with the job")
        alias = job_certificate.alias or config.alias
        if not alias:
            raise ValueError("No alias was provided with the job")
        if job_certificate.private_key_password:
            raise ValueError("Certificates with private keys cannot be added to a device trust store")
        return alias, job_certificate.contents

    def _add(self, config: JobConfiguration) -> JobResult:
        alias, contents = self._job_certificate(config)
        certificate = load_certificate_any(contents)

        if not is_ca_certificate(certificate):
            return self.warning(
                config,
                "UNSUPPORTED OPERATION --- This certificate cannot be used as a Trust. "
                "Unable to add end-entity certificates to a device.",
            )
        self.logger.info("Certificate is a CA trust certificate. Proceeding with Add operation...")

        with self.create_client(config) as client:
            if any(ca.alias == alias for ca in client.list_ca_certificates()):
                return self.warning(
                    config, "ALIAS ALREADY EXISTS FOR CA CERTIFICATE --- Provide a new alias and resubmit."
                )
            self.logger.info(f"Alias '{alias}' does not exist for any CA certificates. Proceeding with Add operation...")

            pem = contents if contents.lstrip().startswith("-----BEGIN") else base64_der_to_pem(contents)
            client.add_ca_certificate(alias, pem, check_alias=False)

        return self.success(config)

    def _remove(self, config: JobConfiguration) -> JobResult:
        alias, contents = self._job_certificate(config)
        certificate = load_certificate_any(contents)

        if not is_ca_certificate(certificate):
            return self.warning(
                config,
                "UNSUPPORTED OPERATION --- This certificate is an end-entity cert. "
                "Unable to remove end-entity certificates from a device.",
            )
        self.logger.info("Certificate is a CA trust certificate. Proceeding with Remove operation...")

        with self.create_client(config) as client:
            client.remove_ca_certificate(alias, contents)

        return self.success(config)
