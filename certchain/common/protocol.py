# certchain/common/protocol.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

from cryptography import x509
from pydantic import BaseModel, ConfigDict


class Side(Enum):
    SERVER = "server"
    CLIENT = "client"


@dataclass(frozen=True)
class ServerLeaf:
    pass


@dataclass(frozen=True)
class ClientLeaf:
    pass


@dataclass(frozen=True)
class ServerRootCA:
    pass


@dataclass(frozen=True)
class ClientRootCA:
    pass


@dataclass(frozen=True)
class ServerIntermediateCA:
    depth: int  # distance from the leaf


@dataclass(frozen=True)
class ClientIntermediateCA:
    depth: int


CertKind = Union[ServerLeaf, ClientLeaf, ServerRootCA, ClientRootCA,
                 ServerIntermediateCA, ClientIntermediateCA]


def is_ca(kind: CertKind) -> bool:
    match kind:
        case ServerLeaf() | ClientLeaf():
            return False
        case _:
            return True


def is_root_ca(kind: CertKind) -> bool:
    return isinstance(kind, (ServerRootCA, ClientRootCA))


def common_name(kind: CertKind, prefix: str) -> str:
    """Subject CN for a role, e.g. 'Prefix Server Intermediate CA 2'."""
    match kind:
        case ServerLeaf():
            role = "Server Leaf"
        case ClientLeaf():
            role = "Client Leaf"
        case ServerRootCA():
            role = "Server Root CA"
        case ClientRootCA():
            role = "Client Root CA"
        case ServerIntermediateCA(depth=depth):
            role = f"Server Intermediate CA {depth}"
        case ClientIntermediateCA(depth=depth):
            role = f"Client Intermediate CA {depth}"
        case _:
            raise TypeError(f"not a CertKind: {kind!r}")
    return f"{prefix} {role}"


class CertSpec(BaseModel):
    """Declarative description of one certificate to issue. Holds no key material."""
    model_config = ConfigDict(frozen=True)

    serial_number: int
    not_before_offset: int  # seconds from now
    not_after_offset: int
    subject_attributes: Tuple[Tuple[str, bytes], ...] = ()
    extensions: Tuple[Tuple[str, str], ...] = ()


class CertAndKeyEncoded(BaseModel):
    """PEM form of a certificate and its private key. Both set, or both empty."""
    model_config = ConfigDict(frozen=True)

    cert_pem: bytes = b""
    private_key_pem: bytes = b""

    def empty(self) -> bool:
        return not self.cert_pem and not self.private_key_pem


class KeyPairDer(BaseModel):
    private_key_der: bytes  # SEC1 ECPrivateKey
    public_key_der: bytes   # SubjectPublicKeyInfo


@dataclass(frozen=True)
class KeyPair:
    private_key: object
    public_key: object

    @classmethod
    def from_private_key(cls, private_key) -> "KeyPair":
        return cls(private_key=private_key, public_key=private_key.public_key())


@dataclass(frozen=True)
class SignedCert:
    certificate: x509.Certificate
    key_pair: KeyPair


# index 0 = leaf, last = root
CertChain = List[CertAndKeyEncoded]
