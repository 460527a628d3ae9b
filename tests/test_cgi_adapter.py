"""
Test suite for the CGI adapter (MQTT client binding).
"""

import json

import pytest

from conftest import json_response
from protocols.cgi_adapter import CgiAdapter
from protocols.core.types import UNBOUND_ALIAS, CertificateUsage
from utils.errors import ApiLogicalError, PolicyRejection, ProtocolInvariantViolation


def client_status(client_cert_id=None, host="broker.example.com", api_version="1.0"):
    ssl_section = {"validateServerCert": True}
    if client_cert_id is not None:
        ssl_section["clientCertID"] = client_cert_id
    server = {"protocol": "ssl"}
    if host is not None:
        server["host"] = host
    document = {
        "method": "getClientStatus",
        "data": {
            "status": {"state": "active"},
            "config": {
                "server": server,
                "clientId": "cam-42",
                "cleanSession": True,
                "ssl": ssl_section,
            },
        },
    }
    if api_version is not None:
        document["apiVersion"] = api_version
    return document


@pytest.fixture
def cgi(transport):
    return CgiAdapter(transport)


class TestGetBinding:

    @pytest.mark.parametrize("value,expected", [(None, UNBOUND_ALIAS), ("", UNBOUND_ALIAS), ("mqtt-cert", "mqtt-cert")])
    def test_client_cert_id(self, cgi, transport, value, expected):
        transport.queue(json_response(client_status(value)))

        assert cgi.get_usage_binding(CertificateUsage.MQTT) == expected

        call = transport.calls[0]
        assert call["path"] == "/axis-cgi/mqtt/client.cgi"
        assert json.loads(call["body"])["method"] == "getClientStatus"

    def test_error_envelope(self, cgi, transport):
        transport.queue(json_response({"apiVersion": "1.0", "error": {"code": 2002, "message": "Method not supported"}}))

        with pytest.raises(ApiLogicalError) as excinfo:
            cgi.get_usage_binding()

        assert excinfo.value.api == "CGI"
        assert excinfo.value.code == 2002

    def test_other_usage_rejected(self, cgi, transport):
        with pytest.raises(PolicyRejection):
            cgi.get_usage_binding(CertificateUsage.HTTPS)
        assert transport.calls == []


class TestSetBinding:

    def test_read_merge_write(self, cgi, transport):
        """Broker settings read in phase 1 are carried into the configureClient call"""
        transport.queue(json_response(client_status("old")), json_response({"apiVersion": "1.0", "data": {}}))

        cgi.set_usage_binding("new-cert")

        assert len(transport.calls) == 2
        request = json.loads(transport.calls[1]["body"])
        assert request["method"] == "configureClient"
        assert request["apiVersion"] == "1.0"
        params = request["params"]
        assert params["server"] == {"protocol": "ssl", "host": "broker.example.com"}
        assert params["clientId"] == "cam-42"
        assert params["cleanSession"] is True
        assert params["ssl"] == {"validateServerCert": True, "clientCertID": "new-cert"}

    def test_alias_with_quotes_stays_valid_json(self, cgi, transport):
        transport.queue(json_response(client_status()), json_response({"apiVersion": "1.0"}))

        cgi.set_usage_binding('cert "A"')

        request = json.loads(transport.calls[1]["body"])
        assert request["params"]["ssl"]["clientCertID"] == 'cert "A"'

    def test_missing_host_stops_after_phase_one(self, cgi, transport):
        transport.queue(json_response(client_status(host=None)))

        with pytest.raises(ProtocolInvariantViolation, match="host"):
            cgi.set_usage_binding("new-cert")

        assert len(transport.calls) == 1

    def test_missing_api_version(self, cgi, transport):
        transport.queue(json_response(client_status(api_version=None)))

        with pytest.raises(ProtocolInvariantViolation, match="apiVersion"):
            cgi.set_usage_binding("new-cert")


class TestDecode:

    def test_string_error(self, cgi):
        envelope = cgi.decode('{"error": "boom"}')
        assert not envelope.ok
        assert envelope.error_message == "boom"

    def test_not_an_object(self, cgi):
        with pytest.raises(ProtocolInvariantViolation):
            cgi.decode("[1, 2]")
