# certchain/crypto/codec.py
"""
PEM encode/decode of SignedCert values and chain bundles.

Exports:
 - load_cert(pem) -> x509.Certificate
 - load_private_key(pem) -> private key object
 - encode(signed) -> CertAndKeyEncoded   (None -> empty)
 - decode(encoded) -> SignedCert or None (empty -> None)
 - concat_chain(chain) -> bytes          (certificate PEMs, leaf first)
"""
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from certchain.common.errors import KEY_TYPE_ERRORS, InvariantViolation, provider_guard
from certchain.common.protocol import CertAndKeyEncoded, CertChain, KeyPair, SignedCert
from certchain.common.utils import to_bytes

def load_cert(pem_bytes: Union[str, bytes]) -> x509.Certificate:
    """Load a PEM-encoded certificate. Raises CryptoProviderError if malformed."""
    with provider_guard("PEM certificate read"):
        return x509.load_pem_x509_certificate(to_bytes(pem_bytes))

def load_private_key(pem_bytes: Union[str, bytes]):
    """Load an unencrypted PEM private key. Raises CryptoProviderError if malformed or encrypted."""
    with provider_guard("PEM private key read", catch=KEY_TYPE_ERRORS):
        return serialization.load_pem_private_key(to_bytes(pem_bytes), password=None)

def cert_to_pem(cert: x509.Certificate) -> bytes:
    with provider_guard("PEM certificate write"):
        return cert.public_bytes(serialization.Encoding.PEM)

def private_key_to_pem(private_key) -> bytes:
    with provider_guard("PEM private key write"):
        return private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )

def encode(signed: Optional[SignedCert]) -> CertAndKeyEncoded:
    if signed is None:
        return CertAndKeyEncoded()
    if signed.certificate is None or signed.key_pair is None:
        raise InvariantViolation("cannot encode a partially specified cert/key pair")
    return CertAndKeyEncoded(
        cert_pem=cert_to_pem(signed.certificate),
        private_key_pem=private_key_to_pem(signed.key_pair.private_key),
    )

def decode(encoded: Optional[CertAndKeyEncoded]) -> Optional[SignedCert]:
    if encoded is None or encoded.empty():
        return None
    # either both set or both unset
    if not encoded.cert_pem or not encoded.private_key_pem:
        raise InvariantViolation("certificate and private key must both be present or both absent")
    cert = load_cert(encoded.cert_pem)
    key = load_private_key(encoded.private_key_pem)
    return SignedCert(certificate=cert, key_pair=KeyPair.from_private_key(key))

def concat_chain(chain: CertChain) -> bytes:
    """Concatenate certificate PEMs in chain order, no separators."""
    return b"".join(entry.cert_pem for entry in chain)
