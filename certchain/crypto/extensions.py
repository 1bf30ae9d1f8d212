# certchain/crypto/extensions.py
"""
OpenSSL-style X.509v3 extension strings -> cryptography extension objects.

A spec carries extensions as (name, value) text pairs, e.g.
    ("basicConstraints", "critical, CA:TRUE")
    ("authorityKeyIdentifier", "keyid, issuer")
The value is a comma separated token list; a leading "critical" marks the
extension critical. Identifier extensions are resolved against an
IssuerContext, which describes the issuing certificate (or the subject
itself when self-signed).
"""
import ipaddress
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, ExtensionOID, ObjectIdentifier

from certchain.common.errors import CertGenerationError, provider_guard


@dataclass(frozen=True)
class IssuerContext:
    """Read-only view of the issuer, valid only while one certificate is built."""
    subject_public_key: object
    issuer_public_key: object
    issuer_name: x509.Name            # subject name of the issuing certificate
    issuer_issuer_name: x509.Name     # issuer name of the issuing certificate
    issuer_serial: int
    issuer_key_id: Optional[bytes] = None
    self_issued: bool = False         # the subject is its own issuer

    @classmethod
    def for_issuer(cls, subject_public_key, issuer_cert: x509.Certificate) -> "IssuerContext":
        with provider_guard("issuer certificate extensions", CertGenerationError):
            try:
                ski = issuer_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
                key_id = ski.value.digest
            except x509.ExtensionNotFound:
                key_id = None
        return cls(
            subject_public_key=subject_public_key,
            issuer_public_key=issuer_cert.public_key(),
            issuer_name=issuer_cert.subject,
            issuer_issuer_name=issuer_cert.issuer,
            issuer_serial=issuer_cert.serial_number,
            issuer_key_id=key_id,
        )

    @classmethod
    def self_signed(cls, public_key, name: x509.Name, serial: int) -> "IssuerContext":
        return cls(
            subject_public_key=public_key,
            issuer_public_key=public_key,
            issuer_name=name,
            issuer_issuer_name=name,
            issuer_serial=serial,
            self_issued=True,
        )


KEY_USAGE_FLAGS = {
    "digitalSignature": "digital_signature",
    "nonRepudiation": "content_commitment",
    "keyEncipherment": "key_encipherment",
    "dataEncipherment": "data_encipherment",
    "keyAgreement": "key_agreement",
    "keyCertSign": "key_cert_sign",
    "cRLSign": "crl_sign",
    "encipherOnly": "encipher_only",
    "decipherOnly": "decipher_only",
}

EXTENDED_KEY_USAGES = {
    "serverAuth": ExtendedKeyUsageOID.SERVER_AUTH,
    "clientAuth": ExtendedKeyUsageOID.CLIENT_AUTH,
    "codeSigning": ExtendedKeyUsageOID.CODE_SIGNING,
    "emailProtection": ExtendedKeyUsageOID.EMAIL_PROTECTION,
    "timeStamping": ExtendedKeyUsageOID.TIME_STAMPING,
    "OCSPSigning": ExtendedKeyUsageOID.OCSP_SIGNING,
}

TRUE_WORDS = ("true", "yes", "y")
FALSE_WORDS = ("false", "no", "n")


def split_value(name: str, value: str) -> Tuple[bool, List[str]]:
    tokens = [t.strip() for t in value.split(",")]
    critical = bool(tokens) and tokens[0] == "critical"
    if critical:
        tokens = tokens[1:]
    tokens = [t for t in tokens if t]
    if not tokens:
        raise CertGenerationError(f"extension {name}", f"no values in '{value}'")
    return critical, tokens


def _key_value(name: str, token: str) -> Tuple[str, str]:
    if ":" not in token:
        raise CertGenerationError(f"extension {name}", f"expected key:value, got '{token}'")
    key, val = token.split(":", 1)
    return key.strip(), val.strip()


def _basic_constraints(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    ca = False
    path_length = None
    for token in tokens:
        key, val = _key_value("basicConstraints", token)
        if key.upper() == "CA":
            if val.lower() in TRUE_WORDS:
                ca = True
            elif val.lower() in FALSE_WORDS:
                ca = False
            else:
                raise CertGenerationError("extension basicConstraints", f"bad CA flag '{val}'")
        elif key.lower() == "pathlen":
            if not val.isdigit():
                raise CertGenerationError("extension basicConstraints", f"bad pathlen '{val}'")
            path_length = int(val)
        else:
            raise CertGenerationError("extension basicConstraints", f"unknown field '{key}'")
    return x509.BasicConstraints(ca=ca, path_length=path_length)


def _key_usage(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    flags = dict.fromkeys(KEY_USAGE_FLAGS.values(), False)
    for token in tokens:
        if token not in KEY_USAGE_FLAGS:
            raise CertGenerationError("extension keyUsage", f"unknown usage '{token}'")
        flags[KEY_USAGE_FLAGS[token]] = True
    return x509.KeyUsage(**flags)


def _extended_key_usage(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    usages = []
    for token in tokens:
        if token in EXTENDED_KEY_USAGES:
            usages.append(EXTENDED_KEY_USAGES[token])
        else:
            usages.append(ObjectIdentifier(token))
    return x509.ExtendedKeyUsage(usages)


def _subject_key_identifier(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    if tokens != ["hash"]:
        raise CertGenerationError("extension subjectKeyIdentifier", f"unsupported value {tokens}")
    return x509.SubjectKeyIdentifier.from_public_key(ctx.subject_public_key)


def _authority_key_identifier(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    want_keyid = want_issuer = False
    keyid_always = issuer_always = False
    for token in tokens:
        key, _, opt = token.partition(":")
        if opt and opt != "always":
            raise CertGenerationError("extension authorityKeyIdentifier", f"bad option '{token}'")
        if key == "keyid":
            want_keyid = True
            keyid_always = opt == "always"
        elif key == "issuer":
            want_issuer = True
            issuer_always = opt == "always"
        else:
            raise CertGenerationError("extension authorityKeyIdentifier", f"unknown field '{key}'")

    key_id = None
    if want_keyid:
        key_id = ctx.issuer_key_id
        # an issuer without SKI contributes no key id unless it is the subject itself
        if key_id is None and ctx.self_issued:
            key_id = x509.SubjectKeyIdentifier.from_public_key(ctx.issuer_public_key).digest
        if key_id is None and keyid_always:
            raise CertGenerationError("extension authorityKeyIdentifier", "issuer has no key identifier")
    if want_issuer and (issuer_always or key_id is None):
        return x509.AuthorityKeyIdentifier(
            key_identifier=key_id,
            authority_cert_issuer=[x509.DirectoryName(ctx.issuer_issuer_name)],
            authority_cert_serial_number=ctx.issuer_serial,
        )
    if key_id is None:
        raise CertGenerationError("extension authorityKeyIdentifier", "nothing to identify the issuer by")
    return x509.AuthorityKeyIdentifier(
        key_identifier=key_id,
        authority_cert_issuer=None,
        authority_cert_serial_number=None,
    )


def _general_name(token: str) -> x509.GeneralName:
    kind, val = _key_value("subjectAltName", token)
    if kind == "DNS":
        return x509.DNSName(val)
    if kind == "IP":
        return x509.IPAddress(ipaddress.ip_address(val))
    if kind == "email":
        return x509.RFC822Name(val)
    if kind == "URI":
        return x509.UniformResourceIdentifier(val)
    raise CertGenerationError("extension subjectAltName", f"unsupported name type '{kind}'")


def _subject_alt_name(tokens: List[str], ctx: IssuerContext) -> x509.ExtensionType:
    return x509.SubjectAlternativeName([_general_name(t) for t in tokens])


EXTENSION_BUILDERS: Dict[str, Callable[[List[str], IssuerContext], x509.ExtensionType]] = {
    "basicConstraints": _basic_constraints,
    "keyUsage": _key_usage,
    "extendedKeyUsage": _extended_key_usage,
    "subjectKeyIdentifier": _subject_key_identifier,
    "authorityKeyIdentifier": _authority_key_identifier,
    "subjectAltName": _subject_alt_name,
}

EXTENSION_NAMES = {
    ExtensionOID.BASIC_CONSTRAINTS: "basicConstraints",
    ExtensionOID.KEY_USAGE: "keyUsage",
    ExtensionOID.EXTENDED_KEY_USAGE: "extendedKeyUsage",
    ExtensionOID.SUBJECT_KEY_IDENTIFIER: "subjectKeyIdentifier",
    ExtensionOID.AUTHORITY_KEY_IDENTIFIER: "authorityKeyIdentifier",
    ExtensionOID.SUBJECT_ALTERNATIVE_NAME: "subjectAltName",
}


def extension_name(oid: ObjectIdentifier) -> str:
    """Name used in extension strings, or the dotted OID for anything else."""
    return EXTENSION_NAMES.get(oid, oid.dotted_string)


def make_extension(name: str, value: str, ctx: IssuerContext) -> Tuple[x509.ExtensionType, bool]:
    """
    Parse one (name, value) pair. Returns (extension, critical).
    Raises CertGenerationError if the name is unknown or the value is rejected.
    """
    builder = EXTENSION_BUILDERS.get(name)
    if builder is None:
        raise CertGenerationError(f"extension {name}", "unsupported extension name")
    critical, tokens = split_value(name, value)
    with provider_guard(f"extension {name}", CertGenerationError):
        ext = builder(tokens, ctx)
    return ext, critical
