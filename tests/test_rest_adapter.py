"""
Test suite for the REST adapter (VAPIX Certificate Management API).
"""

import json

import pytest

from conftest import RecordingTransport, json_response
from protocols.base import NO_RESPONSE_DIAGNOSTIC, decode_http_status
from protocols.core.types import CertificateUsage, HttpMethod, Keystore, NormalizedResponse
from protocols.rest_adapter import RestAdapter
from utils.errors import ApiLogicalError, PolicyRejection, ProtocolInvariantViolation, TransportError

BASE = "/config/rest/cert/v1beta"


@pytest.fixture
def rest(transport):
    return RestAdapter(transport)


class TestDecode:

    def test_success_envelope(self, rest):
        envelope = rest.decode('{"status": "success", "data": "TEE0"}')
        assert envelope.ok
        assert envelope.value == "TEE0"

    def test_error_envelope(self, rest):
        envelope = rest.decode('{"status": "error", "error": {"code": 2103, "message": "Alias not found"}}')

        assert not envelope.ok
        assert envelope.error_code == 2103
        assert envelope.error_message == "Alias not found"

    @pytest.mark.parametrize("raw", ['{"status": "success"', '["success"]', '{"status": "pending"}'])
    def test_malformed_bodies(self, rest, raw):
        with pytest.raises(ProtocolInvariantViolation):
            rest.decode(raw)


class TestInventory:

    def test_list_certificates(self, rest, transport, pki):
        """Two certificates come back unbound with their keystore"""
        transport.queue(json_response({
            "status": "success",
            "data": [
                {"alias": "c1", "keystore": "TEE0", "certificate": pki.leaf.pem},
                {"alias": "c2", "keystore": "SE0", "certificate": pki.direct_leaf.pem},
            ],
        }))

        certificates = rest.list_certificates()

        assert [c.alias for c in certificates] == ["c1", "c2"]
        assert [c.keystore for c in certificates] == [Keystore.TEE, Keystore.SECURE_ELEMENT]
        assert all(c.usage_binding is CertificateUsage.UNBOUND for c in certificates)
        assert transport.calls == [
            {"method": HttpMethod.GET, "path": f"{BASE}/certificates", "body": None, "content_type": "application/json"}
        ]

    def test_unknown_keystore_is_an_invariant_violation(self, rest, transport):
        transport.queue(json_response({"status": "success", "data": [{"alias": "c1", "keystore": "HSM9"}]}))

        with pytest.raises(ProtocolInvariantViolation, match="c1"):
            rest.list_certificates()

    def test_empty_list(self, rest, transport):
        transport.queue(json_response({"status": "success", "data": []}))
        assert rest.list_ca_certificates() == []

    def test_list_ca_certificates(self, rest, transport, pki):
        transport.queue(json_response({"status": "success", "data": [{"alias": "root", "certificate": pki.root.pem}]}))

        cas = rest.list_ca_certificates()

        assert cas[0].alias == "root"
        assert cas[0].pem == pki.root.pem
        assert transport.calls[0]["path"] == f"{BASE}/ca_certificates"

    def test_entry_without_alias(self, rest, transport):
        transport.queue(json_response({"status": "success", "data": [{"certificate": "x"}]}))

        with pytest.raises(ProtocolInvariantViolation):
            rest.list_ca_certificates()

    def test_default_keystore(self, rest, transport):
        transport.queue(json_response({"status": "success", "data": "SE0"}))

        assert rest.get_default_keystore() is Keystore.SECURE_ELEMENT
        assert transport.calls[0]["path"] == f"{BASE}/settings/keystore"


class TestEnrollment:

    def test_create_self_signed_body(self, rest, transport):
        transport.queue(json_response({"status": "success"}))

        rest.create_self_signed_certificate("cam-https", "EC-P256", Keystore.TEE, "CN=cam1", ["DNS:cam1.local"])

        call = transport.calls[0]
        assert call["method"] is HttpMethod.POST
        assert call["path"] == f"{BASE}/create_certificate"
        assert json.loads(call["body"]) == {
            "data": {
                "alias": "cam-https",
                "key_type": "EC-P256",
                "keystore": "TEE0",
                "subject": "CN=cam1",
                "subject_alt_names": ["DNS:cam1.local"],
                "valid_from": 0,
                "valid_to": 0,
            }
        }

    def test_obtain_csr(self, rest, transport):
        csr = "-----BEGIN CERTIFICATE REQUEST-----\nAAAA\n-----END CERTIFICATE REQUEST-----"
        transport.queue(json_response({"status": "success", "data": csr}))

        assert rest.obtain_csr("cam/1") == csr
        call = transport.calls[0]
        assert call["path"] == f"{BASE}/certificates/cam%2F1/get_csr"
        assert json.loads(call["body"]) == {"data": {}}

    def test_obtain_csr_without_csr(self, rest, transport):
        transport.queue(json_response({"status": "success", "data": ""}))

        with pytest.raises(ProtocolInvariantViolation):
            rest.obtain_csr("c1")

    def test_replace_certificate(self, rest, transport, pki):
        transport.queue(json_response({"status": "success"}))

        rest.replace_certificate("c1", pki.leaf.pem)

        call = transport.calls[0]
        assert call["method"] is HttpMethod.PATCH
        assert call["path"] == f"{BASE}/certificates/c1"
        assert json.loads(call["body"]) == {"data": {"certificate": pki.leaf.pem}}


class TestTrustStore:

    def test_add_and_remove(self, rest, transport, pki):
        transport.queue(json_response({"status": "success"}), json_response({"status": "success"}))

        rest.add_ca_certificate("corp root", pki.root.pem)
        rest.remove_ca_certificate("corp root")

        add, remove = transport.calls
        assert add["method"] is HttpMethod.POST
        assert json.loads(add["body"]) == {"data": {"alias": "corp root", "certificate": pki.root.pem}}
        assert remove["method"] is HttpMethod.DELETE
        assert remove["path"] == f"{BASE}/ca_certificates/corp%20root"
        assert remove["body"] is None


class TestErrorClassification:

    def test_error_envelope_raises_api_logical_error(self, rest, transport):
        transport.queue(json_response({"status": "error", "error": {"code": 2103, "message": "Alias not found"}}))

        with pytest.raises(ApiLogicalError) as excinfo:
            rest.remove_ca_certificate("missing")

        assert excinfo.value.api == "REST"
        assert excinfo.value.code == 2103
        assert excinfo.value.message_text == "Alias not found"

    def test_unauthorized(self, rest, transport):
        transport.queue(json_response("", status_code=401))

        with pytest.raises(TransportError) as excinfo:
            rest.list_certificates()

        assert excinfo.value.status_code == 401
        assert "Unauthorized! (401)" in str(excinfo.value)

    def test_unmapped_status(self, rest, transport):
        transport.queue(NormalizedResponse(ok=False, raw="", status_code=503, reason="Service Unavailable"))

        with pytest.raises(TransportError) as excinfo:
            rest.list_certificates()

        assert excinfo.value.status_code == 503
        assert "HTTP status: 503" in excinfo.value.diagnostic

    def test_empty_body_on_success(self, rest, transport):
        transport.queue(json_response("   "))

        with pytest.raises(ProtocolInvariantViolation, match="No content"):
            rest.list_certificates()

    def test_empty_post_body_is_refused_locally(self):
        transport = RecordingTransport()
        rest = RestAdapter(transport)

        with pytest.raises(PolicyRejection, match="JSON body is null or empty"):
            rest.execute("AddCaCertificate", "ca_certificates", HttpMethod.POST, "")

        assert transport.calls == []


class TestDecodeHttpStatus:

    def test_mapped(self):
        assert decode_http_status(404) == "Not Found! (404)"

    def test_no_response(self):
        text = decode_http_status(None, "timed out")
        assert text.startswith(NO_RESPONSE_DIAGNOSTIC)
        assert "HTTP status" not in text
        assert text.endswith("Error message: timed out")
