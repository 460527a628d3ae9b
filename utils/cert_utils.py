"""
Certificate utility functions for device certificate handling.

Provides helpers for SKI/AKI extraction, CA detection, PEM/DER conversion,
subject decoding and CSR checks.

NOTE - Key identifiers:
-----------------------
SKI/AKI comparisons use the raw key identifier bytes
(SubjectKeyIdentifier.digest / AuthorityKeyIdentifier.key_identifier),
never the DER encoding of the whole extension. Missing extensions are
reported as None so that chain walking can treat them as a broken link.
"""

import base64
import binascii
import re
from pathlib import Path
from typing import List, Optional, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.x509.oid import ExtensionOID, NameOID

from config.orchestrator_config import ORCHESTRATOR_CONSTANTS


PEM_HEADER = "-----BEGIN CERTIFICATE-----"
PEM_FOOTER = "-----END CERTIFICATE-----"

# Attribute names as rendered one-per-line in the subject DN.
# cryptography has no short name for serialNumber, the Axis device ID
# certificates carry the device serial there.
_SUBJECT_ATTRIBUTE_NAMES = {
    NameOID.SERIAL_NUMBER: "SERIALNUMBER",
    NameOID.EMAIL_ADDRESS: "E",
    NameOID.STATE_OR_PROVINCE_NAME: "S",
    NameOID.GIVEN_NAME: "G",
    NameOID.SURNAME: "SN",
    NameOID.TITLE: "T",
}


def get_certificate_ski(certificate: x509.Certificate) -> Optional[bytes]:
    """
    Extracts the Subject Key Identifier key id bytes.

    Args:
        certificate: X.509 certificate

    Returns:
        SKI bytes, or None when the extension is missing
    """
    try:
        ext = certificate.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_KEY_IDENTIFIER)
    except x509.ExtensionNotFound:
        return None
    return ext.value.digest


def get_certificate_aki(certificate: x509.Certificate) -> Optional[bytes]:
    """
    Extracts the keyIdentifier field of the Authority Key Identifier.

    Args:
        certificate: X.509 certificate

    Returns:
        AKI key identifier bytes, or None when the extension (or its
        keyIdentifier field) is missing
    """
    try:
        ext = certificate.extensions.get_extension_for_oid(ExtensionOID.AUTHORITY_KEY_IDENTIFIER)
    except x509.ExtensionNotFound:
        return None
    return ext.value.key_identifier


def key_id_hex(key_id: Optional[bytes]) -> str:
    """Lower-case hex of a key identifier, or '(none)'."""
    return key_id.hex() if key_id else "(none)"


def is_self_issued(certificate: x509.Certificate) -> bool:
    """
    True for a root: issuer equals subject and, when both key identifiers
    are present, AKI equals SKI.
    """
    if certificate.issuer != certificate.subject:
        return False
    aki = get_certificate_aki(certificate)
    ski = get_certificate_ski(certificate)
    return aki is None or ski is None or aki == ski


def is_ca_certificate(certificate: x509.Certificate) -> bool:
    """
    Checks the basicConstraints extension for CA:true.

    A certificate without basicConstraints is treated as end-entity.

    Args:
        certificate: X.509 certificate

    Returns:
        True if CA certificate, False otherwise
    """
    try:
        bc = certificate.extensions.get_extension_for_oid(ExtensionOID.BASIC_CONSTRAINTS).value
    except x509.ExtensionNotFound:
        return False
    return bool(bc.ca)


def load_certificates_from_pem_file(path: Union[str, Path]) -> List[x509.Certificate]:
    """
    Loads every certificate of a PEM-concatenated bundle file.

    Args:
        path: bundle location

    Returns:
        List of certificates in file order (empty list for a file with no
        PEM blocks)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a PEM block cannot be parsed
    """
    data = Path(path).read_bytes()
    if b"-----BEGIN" not in data:
        return []
    return x509.load_pem_x509_certificates(data)


def load_certificate_any(data: Union[str, bytes]) -> x509.Certificate:
    """
    Parses a certificate given as PEM text, raw DER bytes or base64 DER.

    Args:
        data: certificate contents

    Returns:
        x509.Certificate

    Raises:
        ValueError: If the contents are not a certificate
    """
    if isinstance(data, str):
        text = data.strip()
        if text.startswith("-----BEGIN"):
            return x509.load_pem_x509_certificate(text.encode("ascii"))
        try:
            der = base64.b64decode(re.sub(r"\s+", "", text), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Certificate contents are neither PEM nor base64 DER: {e}") from e
        return x509.load_der_x509_certificate(der)

    if data.lstrip().startswith(b"-----BEGIN"):
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def insert_line_breaks(text: str, line_length: int = ORCHESTRATOR_CONSTANTS.PEM_LINE_LENGTH) -> str:
    """
    Splits text into lines of line_length characters (no trailing newline).
    """
    return "\n".join(text[i:i + line_length] for i in range(0, len(text), line_length))


def base64_der_to_pem(cert_base64_der: str) -> str:
    """
    Wraps base64 DER contents into a PEM certificate block.

    Args:
        cert_base64_der: base64 encoded DER (whitespace is ignored)

    Returns:
        PEM string with 64-character lines
    """
    body = insert_line_breaks(re.sub(r"\s+", "", cert_base64_der))
    return f"{PEM_HEADER}\n{body}\n{PEM_FOOTER}"


def certificate_to_pem(certificate: x509.Certificate) -> str:
    """PEM text of a certificate, without trailing newline."""
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii").strip()


def get_certificate_fingerprint(certificate: x509.Certificate) -> str:
    """SHA-256 fingerprint as lower-case hex (no separators)."""
    return certificate.fingerprint(hashes.SHA256()).hex()


def decode_subject_lines(name: x509.Name) -> List[str]:
    """
    Renders a distinguished name one attribute per line ("ATTR=value").

    Multi-valued RDNs contribute one line per attribute, so a value can
    never be confused with a neighbouring attribute.

    Args:
        name: subject or issuer name

    Returns:
        Lines in encoding order
    """
    lines = []
    for rdn in name.rdns:
        for attribute in rdn:
            label = _SUBJECT_ATTRIBUTE_NAMES.get(attribute.oid)
            if label is None:
                label = attribute.rfc4514_attribute_name
            value = attribute.value
            if isinstance(value, bytes):
                value = value.hex()
            lines.append(f"{label}={value}")
    return lines


def validate_csr(csr_pem: str) -> x509.CertificateSigningRequest:
    """
    Parses a PEM CSR and verifies its self-signature.

    Args:
        csr_pem: PEM encoded PKCS#10 request

    Returns:
        The parsed request

    Raises:
        ValueError: If the CSR cannot be parsed or its signature is invalid
    """
    try:
        csr = x509.load_pem_x509_csr(csr_pem.encode("ascii") if isinstance(csr_pem, str) else csr_pem)
    except (ValueError, UnicodeEncodeError) as e:
        raise ValueError(f"CSR Validation failed: {e}") from e

    try:
        valid = csr.is_signature_valid
    except InvalidSignature:
        valid = False
    if not valid:
        raise ValueError("CSR Validation failed: CSR signature verification failed.")
    return csr


def format_certificate_info(certificate: x509.Certificate) -> str:
    """
    Formats certificate information as human-readable string.

    Args:
        certificate: X.509 certificate

    Returns:
        Formatted string with certificate details
    """
    subject = certificate.subject.rfc4514_string()
    issuer = certificate.issuer.rfc4514_string()
    not_before = certificate.not_valid_before_utc
    not_after = certificate.not_valid_after_utc

    return (
        f"Subject: {subject}\n"
        f"Issuer: {issuer}\n"
        f"Serial: {certificate.serial_number}\n"
        f"SKI: {key_id_hex(get_certificate_ski(certificate))}\n"
        f"AKI: {key_id_hex(get_certificate_aki(certificate))}\n"
        f"Validity: {not_before.strftime('%Y-%m-%d %H:%M:%S')} to "
        f"{not_after.strftime('%Y-%m-%d %H:%M:%S')}"
    )
