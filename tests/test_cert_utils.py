"""
Test suite for the certificate helpers.
"""

import base64

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from conftest import issue_certificate, name
from utils.cert_utils import (
    base64_der_to_pem,
    certificate_to_pem,
    decode_subject_lines,
    format_certificate_info,
    get_certificate_aki,
    get_certificate_fingerprint,
    get_certificate_ski,
    insert_line_breaks,
    is_ca_certificate,
    is_self_issued,
    load_certificate_any,
    load_certificates_from_pem_file,
    validate_csr,
)


def make_csr_pem(common_name="cam1") -> str:
    key = ec.generate_private_key(ec.SECP256R1())
    csr = (
        x509.CertificateSigningRequestBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)]))
        .sign(key, hashes.SHA256())
    )
    return csr.public_bytes(serialization.Encoding.PEM).decode("ascii")


class TestKeyIdentifiers:

    def test_aki_of_child_equals_ski_of_parent(self, pki):
        assert get_certificate_aki(pki.leaf.certificate) == get_certificate_ski(pki.intermediate.certificate)
        assert get_certificate_aki(pki.intermediate.certificate) == get_certificate_ski(pki.root.certificate)

    def test_missing_extensions_return_none(self, pki):
        cert = issue_certificate(name("bare"), issuer=pki.root, include_ski=False, include_aki=False)

        assert get_certificate_ski(cert.certificate) is None
        assert get_certificate_aki(cert.certificate) is None

    def test_self_issued(self, pki):
        assert is_self_issued(pki.root.certificate)
        assert not is_self_issued(pki.intermediate.certificate)


class TestCaDetection:

    def test_ca_and_end_entity(self, pki):
        assert is_ca_certificate(pki.root.certificate)
        assert is_ca_certificate(pki.intermediate.certificate)
        assert not is_ca_certificate(pki.leaf.certificate)

    def test_no_basic_constraints_is_end_entity(self, pki):
        cert = issue_certificate(name("legacy"), issuer=pki.root, include_basic_constraints=False)
        assert not is_ca_certificate(cert.certificate)


class TestLoading:

    def test_pem_der_and_base64_der(self, pki):
        expected = pki.root.certificate

        assert load_certificate_any(pki.root.pem) == expected
        assert load_certificate_any(pki.root.der) == expected
        assert load_certificate_any(base64.b64encode(pki.root.der).decode("ascii")) == expected
        assert load_certificate_any(pki.root.pem.encode("ascii")) == expected

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            load_certificate_any("not a certificate!")

    def test_bundle_file_order(self, tmp_path, pki):
        path = tmp_path / "bundle.pem"
        path.write_text(pki.intermediate.pem + pki.root.pem)

        certs = load_certificates_from_pem_file(path)

        assert certs == [pki.intermediate.certificate, pki.root.certificate]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.pem"
        path.write_text("\n")
        assert load_certificates_from_pem_file(path) == []


class TestPemFormatting:

    def test_base64_der_to_pem(self, pki):
        b64 = base64.b64encode(pki.root.der).decode("ascii")

        pem = base64_der_to_pem(b64)

        lines = pem.splitlines()
        assert lines[0] == "-----BEGIN CERTIFICATE-----"
        assert lines[-1] == "-----END CERTIFICATE-----"
        assert all(len(line) <= 64 for line in lines[1:-1])
        assert x509.load_pem_x509_certificate(pem.encode("ascii")) == pki.root.certificate

    def test_insert_line_breaks(self):
        assert insert_line_breaks("abcdefg", 3) == "abc\ndef\ng"

    def test_certificate_to_pem_round_trip(self, pki):
        pem = certificate_to_pem(pki.leaf.certificate)
        assert not pem.endswith("\n")
        assert load_certificate_any(pem) == pki.leaf.certificate


class TestSubjectDecoding:

    def test_one_line_per_attribute(self, pki):
        assert decode_subject_lines(pki.leaf.certificate.subject) == ["CN=cam1", "SERIALNUMBER=ABC123"]

    def test_multi_valued_rdn_is_split(self):
        subject = x509.Name([
            x509.RelativeDistinguishedName([
                x509.NameAttribute(NameOID.COMMON_NAME, "cam1"),
                x509.NameAttribute(NameOID.SERIAL_NUMBER, "ABC123"),
            ]),
            x509.RelativeDistinguishedName([x509.NameAttribute(NameOID.EMAIL_ADDRESS, "ops@example.com")]),
        ])

        lines = decode_subject_lines(subject)

        assert "SERIALNUMBER=ABC123" in lines
        assert "CN=cam1" in lines
        assert "E=ops@example.com" in lines
        assert len(lines) == 3


class TestCsr:

    def test_valid_csr(self):
        csr = validate_csr(make_csr_pem("cam7"))
        assert csr.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value == "cam7"

    def test_malformed_csr(self):
        with pytest.raises(ValueError, match="CSR Validation failed"):
            validate_csr("-----BEGIN CERTIFICATE REQUEST-----\nAAAA\n-----END CERTIFICATE REQUEST-----")


class TestInfo:

    def test_fingerprint_and_info(self, pki):
        fingerprint = get_certificate_fingerprint(pki.leaf.certificate)
        assert len(fingerprint) == 64

        info = format_certificate_info(pki.leaf.certificate)
        assert "CN=cam1" in info
        assert "SKI:" in info and "AKI:" in info
