# certchain/crypto/pki.py

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.x509.oid import SignatureAlgorithmOID
from typing import Optional
import logging

from certchain.common.errors import KEY_TYPE_ERRORS, CertGenerationError, InvariantViolation, provider_guard
from certchain.common.protocol import CertSpec, KeyPair, SignedCert
from certchain.common.utils import offset_from, utcnow
from certchain.crypto import codec, keys
from certchain.crypto.extensions import IssuerContext, extension_name, make_extension
from certchain.crypto.names import build_name

logger = logging.getLogger(__name__)

SIGNATURE_HASH = hashes.SHA256()

SIGNATURE_ALGORITHM_NAMES = {
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ecdsa-with-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ecdsa-with-SHA384",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "sha256WithRSAEncryption",
}


def _check_issuer(issuer: Optional[SignedCert]) -> None:
    if issuer is None:
        return
    key_pair = getattr(issuer, "key_pair", None)
    if getattr(issuer, "certificate", None) is None or key_pair is None \
            or getattr(key_pair, "private_key", None) is None:
        raise InvariantViolation("issuer must carry both a certificate and a private key")


def sign(spec: CertSpec, issuer: Optional[SignedCert] = None) -> SignedCert:
    """
    Issue a certificate for a fresh key pair.

    With no issuer the certificate is self-signed: issuer name = subject name,
    signed with its own new key. Otherwise it is signed with issuer's private key
    and carries issuer's subject as its issuer name.

    Raises:
      - InvariantViolation if issuer is only partially specified
      - CryptoProviderError if key generation fails
      - CertGenerationError if a name, extension or signing step is rejected
    """
    _check_issuer(issuer)
    self_signed = issuer is None
    key_pair = keys.generate()

    subject = build_name(spec.subject_attributes)
    now = utcnow()
    with provider_guard("certificate fields", CertGenerationError):
        builder = x509.CertificateBuilder()\
            .serial_number(spec.serial_number)\
            .not_valid_before(offset_from(now, spec.not_before_offset))\
            .not_valid_after(offset_from(now, spec.not_after_offset))\
            .public_key(key_pair.public_key)\
            .subject_name(subject)\
            .issuer_name(subject if self_signed else issuer.certificate.subject)

    if self_signed:
        ctx = IssuerContext.self_signed(key_pair.public_key, subject, spec.serial_number)
    else:
        ctx = IssuerContext.for_issuer(key_pair.public_key, issuer.certificate)
    for name, value in spec.extensions:
        ext, critical = make_extension(name, value, ctx)
        with provider_guard(f"adding extension {name}", CertGenerationError):
            builder = builder.add_extension(ext, critical=critical)

    signing_key = key_pair.private_key if self_signed else issuer.key_pair.private_key
    with provider_guard("certificate signing", CertGenerationError, catch=KEY_TYPE_ERRORS):
        cert = builder.sign(private_key=signing_key, algorithm=SIGNATURE_HASH)

    logger.debug("issued cert CN=%s serial=%d self_signed=%s",
                 common_name_of(cert), cert.serial_number, self_signed)
    return SignedCert(certificate=cert, key_pair=key_pair)


def verify_issued_by(cert: x509.Certificate, issuer_cert: x509.Certificate) -> None:
    """
    Verify that `cert` was signed by the key of `issuer_cert`.

    Raises:
      - ValueError if issuer does not match issuer_cert's subject
      - InvalidSignature (propagated) if the signature does not verify
    """
    if cert.issuer != issuer_cert.subject:
        raise ValueError("certificate issuer does not match issuer subject")

    issuer_pub = issuer_cert.public_key()
    if isinstance(issuer_pub, ec.EllipticCurvePublicKey):
        issuer_pub.verify(
            cert.signature,
            cert.tbs_certificate_bytes,
            ec.ECDSA(cert.signature_hash_algorithm),
        )
    elif isinstance(issuer_pub, rsa.RSAPublicKey):
        issuer_pub.verify(
            cert.signature,
            cert.tbs_certificate_bytes,
            padding.PKCS1v15(),
            cert.signature_hash_algorithm,
        )
    else:
        raise ValueError(f"unsupported issuer key type {type(issuer_pub).__name__}")


def is_self_signed(cert: x509.Certificate) -> bool:
    """True if issuer == subject and the certificate verifies against its own key."""
    try:
        verify_issued_by(cert, cert)
    except (ValueError, InvalidSignature):
        return False
    return True


def common_name_of(cert: x509.Certificate) -> str:
    """Return the subject Common Name, or '' if there is none."""
    attrs = cert.subject.get_attributes_for_oid(x509.NameOID.COMMON_NAME)
    return attrs[0].value if attrs else ""


def cert_fingerprint_hex(cert: x509.Certificate) -> str:
    """Return the SHA-256 fingerprint of the certificate as a hex string."""
    return cert.fingerprint(hashes.SHA256()).hex()


def public_key_matches(cert: x509.Certificate, key_pair: KeyPair) -> bool:
    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    der = serialization.Encoding.DER
    return cert.public_key().public_bytes(der, spki) == key_pair.public_key.public_bytes(der, spki)


def format_cert(cert_pem) -> str:
    """Human-readable summary of a PEM certificate."""
    cert = codec.load_cert(cert_pem)
    lines = [
        "Certificate:",
        f"    Version: {cert.version.name}",
        f"    Serial Number: {cert.serial_number}",
        f"    Signature Algorithm: {SIGNATURE_ALGORITHM_NAMES.get(cert.signature_algorithm_oid, cert.signature_algorithm_oid.dotted_string)}",
        f"    Issuer: {cert.issuer.rfc4514_string()}",
        f"    Not Before: {cert.not_valid_before_utc.isoformat()}",
        f"    Not After : {cert.not_valid_after_utc.isoformat()}",
        f"    Subject: {cert.subject.rfc4514_string()}",
        f"    SHA-256 Fingerprint: {cert_fingerprint_hex(cert)}",
        "    X509v3 extensions:",
    ]
    for ext in cert.extensions:
        flag = " critical" if ext.critical else ""
        lines.append(f"        {extension_name(ext.oid)}:{flag}")
        lines.append(f"            {ext.value!r}")
    return "\n".join(lines)


def _hex_lines(data: bytes, indent: str = "    ") -> list:
    """Colon separated hex, 15 bytes per line."""
    hexed = [f"{b:02x}" for b in data]
    return [indent + ":".join(hexed[i:i + 15]) + ":" for i in range(0, len(hexed), 15)]


def format_private_key(private_key_pem) -> str:
    """
    Human-readable dump of a PEM private key, including the secret part.
    Meant for interactive inspection of test keys; never log its output.
    """
    key = codec.load_private_key(private_key_pem)
    if isinstance(key, ec.EllipticCurvePrivateKey):
        scalar = key.private_numbers().private_value.to_bytes((key.key_size + 7) // 8, "big")
        point = key.public_key().public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)
        lines = [f"Private-Key: ({key.key_size} bit)", "priv:"]
        lines += _hex_lines(scalar)
        lines.append("pub:")
        lines += _hex_lines(point)
        lines.append(f"ASN1 OID: {key.curve.name}")
        return "\n".join(lines)
    if isinstance(key, rsa.RSAPrivateKey):
        numbers = key.private_numbers()
        lines = [f"Private-Key: ({key.key_size} bit)", "modulus:"]
        lines += _hex_lines(numbers.public_numbers.n.to_bytes((key.key_size + 7) // 8, "big"))
        lines.append(f"publicExponent: {numbers.public_numbers.e}")
        lines.append("privateExponent:")
        lines += _hex_lines(numbers.d.to_bytes((key.key_size + 7) // 8, "big"))
        return "\n".join(lines)
    raise CertGenerationError("private key dump", f"unsupported key type {type(key).__name__}")
