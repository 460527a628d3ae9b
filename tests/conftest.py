"""
Pytest Configuration and Shared Fixtures

Provides fixtures shared by all tests:
- A throwaway Axis-like PKI (root, intermediate, device ID leaf) built with cryptography
- Trust anchor files in a temporary directory
- RecordingTransport: a fake device transport answering from a queue and
  recording every request, so tests can assert what was (or was not) sent

Author: Axis Camera Orchestrator Project
Date: October 2026
"""

import json
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from entities.device_api_client import DeviceApiClient
from protocols.core.types import NormalizedResponse


# ============================================================================
# PKI FACTORY
# ============================================================================


class IssuedCertificate:
    """Certificate plus its private key."""

    def __init__(self, certificate, key):
        self.certificate = certificate
        self.key = key

    @property
    def pem(self) -> str:
        return self.certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")

    @property
    def der(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.DER)


def issue_certificate(
    subject: x509.Name,
    issuer=None,
    ca: bool = False,
    sans=None,
    include_ski: bool = True,
    include_aki: bool = True,
    include_basic_constraints: bool = True,
    not_before=None,
    not_after=None,
) -> IssuedCertificate:
    """
    Issues a certificate signed by issuer (self-signed when issuer is None).
    """
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)
    signer_key = issuer.key if issuer else key
    issuer_name = issuer.certificate.subject if issuer else subject

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer_name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=365))
    )

    if include_basic_constraints:
        builder = builder.add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)

    if ca:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True, crl_sign=True,
                encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
    else:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=False, crl_sign=False,
                encipher_only=False, decipher_only=False,
            ),
            critical=True,
        ).add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)

    ski = x509.SubjectKeyIdentifier.from_public_key(key.public_key())
    if include_ski:
        builder = builder.add_extension(ski, critical=False)

    if include_aki:
        if issuer is not None:
            issuer_ski = issuer.certificate.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
            aki = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(issuer_ski)
        else:
            aki = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski)
        builder = builder.add_extension(aki, critical=False)

    if sans:
        builder = builder.add_extension(x509.SubjectAlternativeName(sans), critical=False)

    certificate = builder.sign(signer_key, hashes.SHA256())
    return IssuedCertificate(certificate, key)


def name(common_name: str, serial_number: str = None) -> x509.Name:
    attributes = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if serial_number is not None:
        attributes.append(x509.NameAttribute(NameOID.SERIAL_NUMBER, serial_number))
    return x509.Name(attributes)


def write_pem(path, *certificates: IssuedCertificate):
    path.write_text("".join(c.pem for c in certificates))
    return path


class AxisPki:
    """Root -> intermediate -> device leaf, plus a leaf issued by the root directly."""

    def __init__(self):
        self.root = issue_certificate(name("Axis Test Root CA"), ca=True)
        self.intermediate = issue_certificate(name("Axis Test Device ID CA"), issuer=self.root, ca=True)
        self.leaf = issue_certificate(
            name("cam1", "ABC123"),
            issuer=self.intermediate,
            sans=[x509.DNSName("cam1.local")],
        )
        self.direct_leaf = issue_certificate(
            name("cam1", "ABC123"),
            issuer=self.root,
            sans=[x509.DNSName("cam1.local")],
        )
        # Unrelated PKI, used for broken links
        self.other_root = issue_certificate(name("Other Root CA"), ca=True)
        self.other_leaf = issue_certificate(
            name("cam1", "ABC123"), issuer=self.other_root, sans=[x509.DNSName("cam1.local")]
        )


@pytest.fixture(scope="session")
def pki():
    """
    Throwaway PKI for the whole session.
    """
    return AxisPki()


@pytest.fixture
def anchor_dir(tmp_path, pki):
    """
    Directory holding Axis.Root, Axis.Intermediate and Axis.Trust.
    """
    write_pem(tmp_path / "Axis.Root", pki.root)
    write_pem(tmp_path / "Axis.Intermediate", pki.intermediate)
    write_pem(tmp_path / "Axis.Trust", pki.intermediate, pki.root)
    return tmp_path


# ============================================================================
# FAKE TRANSPORT
# ============================================================================


def json_response(document, status_code: int = 200) -> NormalizedResponse:
    raw = document if isinstance(document, str) else json.dumps(document)
    return NormalizedResponse(ok=200 <= status_code < 300, raw=raw, status_code=status_code)


def xml_response(raw: str, status_code: int = 200) -> NormalizedResponse:
    return NormalizedResponse(ok=200 <= status_code < 300, raw=raw, status_code=status_code)


class RecordingTransport:
    """
    Device transport double: answers from a queue, records every request.
    """

    def __init__(self, *responses: NormalizedResponse):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses: NormalizedResponse):
        self.responses.extend(responses)

    def request(self, method, path, body=None, content_type="application/json"):
        self.calls.append({"method": method, "path": path, "body": body, "content_type": content_type})
        if not self.responses:
            raise AssertionError(f"Unexpected request {method.value} {path}")
        return self.responses.pop(0)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(transport):
    return DeviceApiClient(transport)
