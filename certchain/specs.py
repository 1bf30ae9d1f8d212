# certchain/specs.py
"""
Certificate specs by role.

build(kind) is a pure function of kind apart from drawing a random serial.
build_chain_spec(length, side) lays out a leaf -> root sequence of specs.
"""
import secrets
from typing import List

from certchain.common import config
from certchain.common.protocol import (
    CertKind, CertSpec, ClientIntermediateCA, ClientLeaf, ClientRootCA,
    ServerIntermediateCA, ServerLeaf, ServerRootCA, Side, common_name, is_ca, is_root_ca,
)

def random_serial() -> int:
    """Uniform in [1, SERIAL_UPPER_BOUND). Not checked for collisions."""
    return secrets.randbelow(config.SERIAL_UPPER_BOUND - 1) + 1

def build(kind: CertKind) -> CertSpec:
    subject = (
        ("countryName", config.SUBJECT_COUNTRY.encode("ascii")),
        ("localityName", config.SUBJECT_LOCALITY.encode("ascii")),
        ("organizationName", config.SUBJECT_ORGANIZATION.encode("ascii")),
        ("commonName", common_name(kind, config.COMMON_NAME_PREFIX).encode("ascii")),
    )
    if is_ca(kind):
        extensions = [
            ("basicConstraints", "critical, CA:TRUE"),
            ("keyUsage", "critical, digitalSignature, keyCertSign, cRLSign"),
        ]
    else:
        extensions = [
            ("basicConstraints", "critical, CA:FALSE"),
            ("keyUsage", "critical, digitalSignature, keyEncipherment"),
            ("extendedKeyUsage", "serverAuth, clientAuth"),
        ]
    extensions.append(("subjectKeyIdentifier", "hash"))
    if not is_root_ca(kind):
        extensions.append(("authorityKeyIdentifier", "keyid, issuer"))
    return CertSpec(
        serial_number=random_serial(),
        not_before_offset=0,  # now
        not_after_offset=config.VALIDITY_SECONDS,
        subject_attributes=subject,
        extensions=tuple(extensions),
    )

def kind_at(index: int, length: int, side: Side) -> CertKind:
    """Role of position `index` in a chain of `length` certs (0 = leaf)."""
    server = side == Side.SERVER
    if index == 0:
        return ServerLeaf() if server else ClientLeaf()
    if index == length - 1:
        return ServerRootCA() if server else ClientRootCA()
    return ServerIntermediateCA(index) if server else ClientIntermediateCA(index)

def build_chain_spec(length: int, side: Side) -> List[CertSpec]:
    return [build(kind_at(i, length, side)) for i in range(length)]
