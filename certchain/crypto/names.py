# certchain/crypto/names.py
"""
Build x509.Name values from (field name, value bytes) pairs.

Field names use OpenSSL's short or long names ("CN", "commonName", ...)
or a dotted OID. Values must be non-empty ASCII.
"""
from typing import Iterable, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID, ObjectIdentifier

from certchain.common.errors import CertGenerationError, provider_guard

FIELD_OIDS = {
    "C": NameOID.COUNTRY_NAME,
    "countryName": NameOID.COUNTRY_NAME,
    "ST": NameOID.STATE_OR_PROVINCE_NAME,
    "stateOrProvinceName": NameOID.STATE_OR_PROVINCE_NAME,
    "L": NameOID.LOCALITY_NAME,
    "localityName": NameOID.LOCALITY_NAME,
    "street": NameOID.STREET_ADDRESS,
    "streetAddress": NameOID.STREET_ADDRESS,
    "O": NameOID.ORGANIZATION_NAME,
    "organizationName": NameOID.ORGANIZATION_NAME,
    "OU": NameOID.ORGANIZATIONAL_UNIT_NAME,
    "organizationalUnitName": NameOID.ORGANIZATIONAL_UNIT_NAME,
    "CN": NameOID.COMMON_NAME,
    "commonName": NameOID.COMMON_NAME,
    "serialNumber": NameOID.SERIAL_NUMBER,
    "emailAddress": NameOID.EMAIL_ADDRESS,
    "DC": NameOID.DOMAIN_COMPONENT,
    "domainComponent": NameOID.DOMAIN_COMPONENT,
    "UID": NameOID.USER_ID,
    "userId": NameOID.USER_ID,
}


def field_oid(field: str) -> ObjectIdentifier:
    if not field:
        raise CertGenerationError("subject field name", "empty field name")
    if field in FIELD_OIDS:
        return FIELD_OIDS[field]
    with provider_guard(f"subject field name '{field}'", CertGenerationError):
        return ObjectIdentifier(field)


def name_attribute(field: str, value: bytes) -> x509.NameAttribute:
    oid = field_oid(field)
    if not value:
        raise CertGenerationError(f"subject field '{field}'", "empty value")
    try:
        text = bytes(value).decode("ascii")
    except UnicodeDecodeError:
        raise CertGenerationError(f"subject field '{field}'", "value is not ASCII")
    with provider_guard(f"subject field '{field}'", CertGenerationError):
        return x509.NameAttribute(oid, text)


def build_name(attributes: Iterable[Tuple[str, bytes]]) -> x509.Name:
    """One RDN per attribute, in the given order."""
    return x509.Name([name_attribute(field, value) for field, value in attributes])
