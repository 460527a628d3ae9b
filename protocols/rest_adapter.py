"""
REST adapter for the VAPIX Certificate Management API (AXIS OS 11+).

Envelopes:
    success: {"status": "success", "data": ...}
    error:   {"status": "error", "error": {"code": int, "message": str}}

Request bodies wrap their payload in {"data": ...}.
"""

import json
from typing import Any, List
from urllib.parse import quote

from config.orchestrator_config import AXIS_API
from protocols.base import ProtocolAdapter
from protocols.core.types import (
    ApiEnvelope,
    ApiType,
    CACertificate,
    DeviceCertificate,
    HttpMethod,
    Keystore,
)
from utils.errors import ProtocolInvariantViolation


def _alias_path(alias: str) -> str:
    return quote(alias, safe="")


class RestAdapter(ProtocolAdapter):
    """
    Certificate inventory and enrollment over the REST API.
    """

    api_type = ApiType.REST
    entry_point = AXIS_API.REST_ENTRY_POINT
    content_type = "application/json"

    def decode(self, raw: str) -> ApiEnvelope:
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise ProtocolInvariantViolation(f"JSON response body is malformed: {e}") from e

        if not isinstance(document, dict):
            raise ProtocolInvariantViolation("REST response is not a JSON object")

        status = document.get("status")
        if status == "success":
            return ApiEnvelope(ok=True, value=document.get("data"))
        if status == "error":
            error = document.get("error")
            if not isinstance(error, dict):
                raise ProtocolInvariantViolation("REST error envelope carries no 'error' object")
            return ApiEnvelope(ok=False, error_code=error.get("code"), error_message=error.get("message"))

        raise ProtocolInvariantViolation(f"Unknown REST response status '{status}'")

    @staticmethod
    def _wrap(payload: Any) -> str:
        return json.dumps({"data": payload})

    @staticmethod
    def _certificate_entries(data: Any, what: str) -> List[dict]:
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(entry, dict) for entry in data):
            raise ProtocolInvariantViolation(f"{what} list is not an array of objects")
        for entry in data:
            if not isinstance(entry.get("alias"), str):
                raise ProtocolInvariantViolation(f"{what} entry without alias")
        return data

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def list_ca_certificates(self) -> List[CACertificate]:
        envelope = self.invoke("ListCaCertificates", "ca_certificates", HttpMethod.GET)
        entries = self._certificate_entries(envelope.value, "CA certificate")
        certificates = [CACertificate(alias=e["alias"], pem=e.get("certificate") or "") for e in entries]
        self.logger.debug(f"{len(certificates)} CA certificates found on the device")
        return certificates

    def list_certificates(self) -> List[DeviceCertificate]:
        """
        Lists the client certificates. Bindings are unknown at this point,
        every certificate comes back UNBOUND.
        """
        envelope = self.invoke("ListCertificates", "certificates", HttpMethod.GET)
        entries = self._certificate_entries(envelope.value, "Certificate")

        certificates = []
        for entry in entries:
            try:
                keystore = Keystore.from_wire(entry.get("keystore"))
            except ValueError as e:
                raise ProtocolInvariantViolation(f"Certificate '{entry['alias']}': {e}") from e
            certificates.append(
                DeviceCertificate(alias=entry["alias"], pem=entry.get("certificate") or "", keystore=keystore)
            )
        self.logger.debug(f"{len(certificates)} client certificates found on the device")
        return certificates

    def get_default_keystore(self) -> Keystore:
        envelope = self.invoke("GetDefaultKeystore", "settings/keystore", HttpMethod.GET)
        try:
            return Keystore.from_wire(envelope.value)
        except ValueError as e:
            raise ProtocolInvariantViolation(str(e)) from e

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------

    def create_self_signed_certificate(
        self, alias: str, key_type: str, keystore: Keystore, subject: str, sans: List[str]
    ) -> None:
        # Validity is decided by the device template
        body = self._wrap({
            "alias": alias,
            "key_type": key_type,
            "keystore": keystore.value,
            "subject": subject,
            "subject_alt_names": list(sans or []),
            "valid_from": 0,
            "valid_to": 0,
        })
        self.invoke("CreateSelfSignedCertificate", "create_certificate", HttpMethod.POST, body)

    def obtain_csr(self, alias: str) -> str:
        envelope = self.invoke(
            "ObtainCSR", f"certificates/{_alias_path(alias)}/get_csr", HttpMethod.POST, self._wrap({})
        )
        if not isinstance(envelope.value, str) or not envelope.value.strip():
            raise ProtocolInvariantViolation("CSR response carries no CSR")
        return envelope.value

    def replace_certificate(self, alias: str, pem_certificate: str) -> None:
        body = self._wrap({"certificate": pem_certificate})
        self.invoke("ReplaceCertificate", f"certificates/{_alias_path(alias)}", HttpMethod.PATCH, body)

    # ------------------------------------------------------------------
    # Trust store
    # ------------------------------------------------------------------

    def add_ca_certificate(self, alias: str, pem_certificate: str) -> None:
        body = self._wrap({"alias": alias, "certificate": pem_certificate})
        self.invoke("AddCaCertificate", "ca_certificates", HttpMethod.POST, body)

    def remove_ca_certificate(self, alias: str) -> None:
        self.invoke("RemoveCaCertificate", f"ca_certificates/{_alias_path(alias)}", HttpMethod.DELETE)
