"""
CGI adapter for the MQTT client API.

Setting the MQTT binding is a read-merge-write: the broker settings are read
from the device (it is their only source), merged with the new alias and
written back in one configureClient call. Nothing guards the window between
the read and the write; a concurrent change made on the device in between is
overwritten (last writer wins).
"""

import json
from typing import Any, Optional

from config.orchestrator_config import AXIS_API
from protocols.base import ProtocolAdapter
from protocols.core.types import (
    UNBOUND_ALIAS,
    ApiEnvelope,
    ApiType,
    CertificateUsage,
    HttpMethod,
    MqttClientConfig,
)
from protocols.templates import GET_MQTT_TEMPLATE, SET_MQTT_TEMPLATE, RequestTemplates
from utils.errors import PolicyRejection, ProtocolInvariantViolation


def _section(document: Any, key: str) -> dict:
    value = document.get(key) if isinstance(document, dict) else None
    return value if isinstance(value, dict) else {}


class CgiAdapter(ProtocolAdapter):
    """
    Reads and writes the MQTT client certificate binding.
    """

    api_type = ApiType.CGI
    entry_point = AXIS_API.CGI_ENTRY_POINT
    content_type = "application/json"

    def __init__(self, transport, templates: Optional[RequestTemplates] = None, logger=None):
        super().__init__(transport, logger)
        self.templates = templates or RequestTemplates()

    def decode(self, raw: str) -> ApiEnvelope:
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise ProtocolInvariantViolation(f"JSON response body is malformed: {e}") from e

        if not isinstance(document, dict):
            raise ProtocolInvariantViolation("CGI response is not a JSON object")

        error = document.get("error")
        if error is None:
            return ApiEnvelope(ok=True, value=document)
        if isinstance(error, dict):
            return ApiEnvelope(ok=False, error_code=error.get("code"), error_message=error.get("message"))
        return ApiEnvelope(ok=False, error_message=str(error))

    @staticmethod
    def _check_usage(usage: CertificateUsage):
        if usage is not CertificateUsage.MQTT:
            raise PolicyRejection(f"Certificate usage '{usage.label}' is not handled by the MQTT client API")

    @staticmethod
    def parse_client_status(document: dict) -> MqttClientConfig:
        """
        Reads the MQTT client snapshot out of a getClientStatus response.

        A missing or empty ``data.config.ssl.clientCertID`` means no
        certificate is bound.
        """
        config = _section(_section(document, "data"), "config")
        server = _section(config, "server")
        ssl_section = _section(config, "ssl")

        return MqttClientConfig(
            api_version=str(document.get("apiVersion") or ""),
            host=server.get("host") or "",
            protocol=server.get("protocol") or "ssl",
            client_id=config.get("clientId") or "",
            clean_session=bool(config.get("cleanSession", False)),
            validate_server_cert=bool(ssl_section.get("validateServerCert", False)),
            client_cert_id=ssl_section.get(AXIS_API.MQTT_ALIAS_KEY) or UNBOUND_ALIAS,
        )

    def get_client_status(self) -> MqttClientConfig:
        self.logger.debug(f"Reading JSON request body template {GET_MQTT_TEMPLATE}")
        body = self.templates.load(GET_MQTT_TEMPLATE)
        envelope = self.invoke("GetClientStatus", "", HttpMethod.POST, body)
        return self.parse_client_status(envelope.value)

    def get_usage_binding(self, usage: CertificateUsage = CertificateUsage.MQTT) -> str:
        self._check_usage(usage)
        status = self.get_client_status()
        if status.client_cert_id == UNBOUND_ALIAS:
            self.logger.debug(f"No client certificate assigned to '{usage.label}'")
        return status.client_cert_id

    def set_usage_binding(self, alias: str, usage: CertificateUsage = CertificateUsage.MQTT) -> None:
        """
        Binds alias as the MQTT client certificate.

        Raises:
            ProtocolInvariantViolation: If the device status lacks the API
                version or the broker host needed for the write
        """
        self._check_usage(usage)

        # Phase 1: current broker settings
        self.logger.debug("Retrieving the MQTT configuration required for the binding request")
        status = self.get_client_status()
        if not status.api_version:
            raise ProtocolInvariantViolation("MQTT client status carries no apiVersion")
        if not status.host:
            raise ProtocolInvariantViolation("MQTT client status carries no server host")

        self.logger.debug(
            f"Client status - API version: {status.api_version}, host: {status.host}, "
            f"client ID: {status.client_id}, alias: {alias}"
        )

        # Phase 2: merge and write
        rendered = self.templates.render_json(
            SET_MQTT_TEMPLATE,
            API_VERSION=status.api_version,
            HOST=status.host,
            CLIENT_ID=status.client_id,
            ALIAS=alias,
        )
        try:
            request = json.loads(rendered)
        except ValueError as e:
            raise ProtocolInvariantViolation(f"{SET_MQTT_TEMPLATE} is not valid JSON: {e}") from e

        params = request.setdefault("params", {})
        params.setdefault("server", {})["protocol"] = status.protocol
        params["cleanSession"] = status.clean_session
        params.setdefault("ssl", {})["validateServerCert"] = status.validate_server_cert

        self.invoke(f"SetUsageBinding({usage.label})", "", HttpMethod.POST, json.dumps(request))
