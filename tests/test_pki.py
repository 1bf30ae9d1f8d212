"""Tests for certificate signing."""
import datetime

import pytest
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from certchain import specs
from certchain.common.errors import CertGenerationError, InvariantViolation
from certchain.common.protocol import CertSpec, ServerIntermediateCA, ServerLeaf, SignedCert
from certchain.crypto import pki
from certchain.crypto.extensions import extension_name


def _spec(**overrides):
    base = dict(
        serial_number=4242,
        not_before_offset=0,
        not_after_offset=3600,
        subject_attributes=(("CN", b"unit test"),),
        extensions=(),
    )
    base.update(overrides)
    return CertSpec(**base)


def test_self_signed_invariant(server_leaf_spec):
    signed = pki.sign(server_leaf_spec)
    cert = signed.certificate
    assert cert.issuer == cert.subject
    assert pki.is_self_signed(cert)
    pki.verify_issued_by(cert, cert)
    assert pki.public_key_matches(cert, signed.key_pair)


def test_fields_copied_from_spec(server_leaf_spec):
    cert = pki.sign(server_leaf_spec).certificate
    assert cert.version == x509.Version.v3
    assert cert.serial_number == server_leaf_spec.serial_number
    assert cert.not_valid_after_utc - cert.not_valid_before_utc == datetime.timedelta(days=365)
    now = datetime.datetime.now(datetime.timezone.utc)
    assert abs((cert.not_valid_before_utc - now).total_seconds()) < 60
    oids = [attr.oid for attr in cert.subject]
    assert oids == [NameOID.COUNTRY_NAME, NameOID.LOCALITY_NAME,
                    NameOID.ORGANIZATION_NAME, NameOID.COMMON_NAME]
    assert pki.common_name_of(cert).endswith("Server Leaf")


def test_leaf_extensions(server_leaf_spec):
    cert = pki.sign(server_leaf_spec).certificate
    bc = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    assert bc.critical and bc.value.ca is False
    ku = cert.extensions.get_extension_for_class(x509.KeyUsage)
    assert ku.critical
    assert ku.value.digital_signature and ku.value.key_encipherment
    assert not ku.value.key_cert_sign
    eku = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
    assert list(eku) == [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]


def test_extension_order_preserved(server_leaf_spec):
    cert = pki.sign(server_leaf_spec).certificate
    names = [extension_name(ext.oid) for ext in cert.extensions]
    assert names == [name for name, _ in server_leaf_spec.extensions]


def test_issued_cert_links_to_issuer(root_signed):
    child = pki.sign(specs.build(ServerIntermediateCA(1)), root_signed)
    cert = child.certificate
    assert cert.issuer == root_signed.certificate.subject
    pki.verify_issued_by(cert, root_signed.certificate)
    assert not pki.is_self_signed(cert)

    root_ski = root_signed.certificate.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
    aki = cert.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier).value
    assert aki.key_identifier == root_ski.value.digest
    ski = cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
    assert ski == x509.SubjectKeyIdentifier.from_public_key(child.key_pair.public_key)


def test_verify_rejects_issuer_name_mismatch(root_signed, server_leaf_spec):
    leaf = pki.sign(server_leaf_spec, root_signed)
    other = pki.sign(server_leaf_spec)
    with pytest.raises(ValueError):
        pki.verify_issued_by(leaf.certificate, other.certificate)


def test_wrong_key_with_matching_name_is_invalid_signature(root_signed):
    leaf = pki.sign(specs.build(ServerLeaf()), root_signed)
    impostor = pki.sign(specs.build(ServerLeaf()), SignedCert(
        certificate=root_signed.certificate, key_pair=pki.sign(_spec()).key_pair))
    pki.verify_issued_by(leaf.certificate, root_signed.certificate)
    with pytest.raises(InvalidSignature):
        pki.verify_issued_by(impostor.certificate, root_signed.certificate)


def test_partial_issuer_is_invariant_violation(root_signed, server_leaf_spec):
    with pytest.raises(InvariantViolation):
        pki.sign(server_leaf_spec, SignedCert(certificate=root_signed.certificate, key_pair=None))
    with pytest.raises(InvariantViolation):
        pki.sign(server_leaf_spec, SignedCert(certificate=None, key_pair=root_signed.key_pair))


@pytest.mark.parametrize("extensions", [
    (("basicConstraints", "critical, CA:MAYBE"),),
    (("keyUsage", "critical, flying"),),
    (("extendedKeyUsage", "notAnOid"),),
    (("noSuchExtension", "value"),),
    (("authorityKeyIdentifier", "keyid:sometimes"),),
    (("subjectAltName", "DNS:localhost, IP:not-an-ip"),),
    (("basicConstraints", "critical"),),
])
def test_rejected_extension_is_cert_generation_error(extensions):
    with pytest.raises(CertGenerationError):
        pki.sign(_spec(extensions=extensions))


@pytest.mark.parametrize("attributes", [
    (("CN", b""),),
    (("", b"value"),),
    (("CN", b"caf\xc3\xa9"),),
    (("countryName", b"DEU"),),
    (("notAField", b"x"),),
])
def test_rejected_subject_is_cert_generation_error(attributes):
    with pytest.raises(CertGenerationError):
        pki.sign(_spec(subject_attributes=attributes))


def test_zero_serial_rejected():
    with pytest.raises(CertGenerationError):
        pki.sign(_spec(serial_number=0))


def test_inverted_validity_rejected():
    with pytest.raises(CertGenerationError):
        pki.sign(_spec(not_before_offset=3600, not_after_offset=0))


def test_subject_alt_name_and_pathlen():
    cert = pki.sign(_spec(extensions=(
        ("basicConstraints", "critical, CA:TRUE, pathlen:0"),
        ("subjectAltName", "DNS:localhost, IP:127.0.0.1"),
    ))).certificate
    bc = cert.extensions.get_extension_for_class(x509.BasicConstraints).value
    assert bc.ca and bc.path_length == 0
    san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    assert san.get_values_for_type(x509.DNSName) == ["localhost"]


def test_format_cert_mentions_subject_and_extensions(server_leaf_spec):
    from certchain.crypto import codec
    pem = codec.encode(pki.sign(server_leaf_spec)).cert_pem
    text = pki.format_cert(pem)
    assert "Server Leaf" in text
    assert str(server_leaf_spec.serial_number) in text
    assert "basicConstraints: critical" in text


def test_format_cert_names_signature_algorithm(server_leaf_spec):
    from certchain.crypto import codec
    text = pki.format_cert(codec.encode(pki.sign(server_leaf_spec)).cert_pem)
    assert "Signature Algorithm: ecdsa-with-SHA256" in text


def test_format_private_key_dumps_curve_point_and_scalar(server_leaf_spec):
    from certchain.crypto import codec
    signed = pki.sign(server_leaf_spec)
    text = pki.format_private_key(codec.encode(signed).private_key_pem)
    assert text.startswith("Private-Key: (256 bit)")
    assert "ASN1 OID: secp256r1" in text
    assert "\npub:\n    04:" in text
    scalar = signed.key_pair.private_key.private_numbers().private_value.to_bytes(32, "big")
    assert f"priv:\n    {scalar[0]:02x}:{scalar[1]:02x}:" in text


def test_format_private_key_rejects_garbage():
    from certchain.common.errors import CryptoProviderError
    with pytest.raises(CryptoProviderError):
        pki.format_private_key(b"not a key")
