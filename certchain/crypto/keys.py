# certchain/crypto/keys.py
"""
Elliptic-curve key pair helpers.

Exports:
 - CURVE (NIST P-256 / prime256v1)
 - generate() -> KeyPair
 - export_der(key_pair) -> KeyPairDer  (SEC1 private key, SubjectPublicKeyInfo public key)
 - make_key_pair_der() -> KeyPairDer
"""
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from certchain.common.errors import provider_guard
from certchain.common.protocol import KeyPair, KeyPairDer

CURVE = ec.SECP256R1()

def generate() -> KeyPair:
    """Create a fresh P-256 key pair. Raises CryptoProviderError on backend failure."""
    with provider_guard("EC key generation"):
        private_key = ec.generate_private_key(CURVE)
    return KeyPair.from_private_key(private_key)

def export_der(key_pair: KeyPair) -> KeyPairDer:
    with provider_guard("DER export of key pair"):
        private_der = key_pair.private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption()
        )
        public_der = key_pair.public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )
    return KeyPairDer(private_key_der=private_der, public_key_der=public_der)

def make_key_pair_der() -> KeyPairDer:
    """Generate a key pair and return only its binary export."""
    return export_der(generate())
