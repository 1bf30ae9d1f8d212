# certchain/chain.py
"""
Chain assembly.

Specs are ordered leaf -> root. Certificates are issued root-first, each one
by the previously issued (more root-ward) certificate, and returned leaf-first.
A failure anywhere aborts the whole build; no partial chain is returned.
"""
import logging
from typing import List, Optional, Sequence

from certchain.common.errors import InvariantViolation
from certchain.common.protocol import CertAndKeyEncoded, CertChain, CertSpec, SignedCert, Side
from certchain.crypto import codec, pki
from certchain.specs import build_chain_spec

logger = logging.getLogger(__name__)


def _issue_down(specs: Sequence[CertSpec], issuer: Optional[SignedCert]) -> List[SignedCert]:
    """Sign specs from last to first, each issued by the one after it."""
    issued = [None] * len(specs)
    for i in range(len(specs) - 1, -1, -1):
        issuer = pki.sign(specs[i], issuer)
        issued[i] = issuer
    return issued


def build_chain_native(specs: Sequence[CertSpec], root: Optional[SignedCert] = None) -> List[SignedCert]:
    """
    Like build_chain but returns SignedCert values. When `root` is given it is
    appended as the last entry without re-signing.
    """
    if len(specs) == 0:
        raise InvariantViolation("cannot build a chain from zero specs")
    if root is None:
        return _issue_down(specs, None)
    return _issue_down(specs, root) + [root]


def build_chain(specs: Sequence[CertSpec], root_authority: Optional[CertAndKeyEncoded] = None) -> CertChain:
    """
    Build a leaf-first chain of PEM cert/key pairs.

    Without root_authority the last spec becomes a self-signed root and the
    chain has len(specs) entries. With root_authority the root is decoded,
    used to sign the last spec and appended unchanged; the chain has
    len(specs) + 1 entries.
    """
    if len(specs) == 0:
        raise InvariantViolation("cannot build a chain from zero specs")
    root = codec.decode(root_authority)
    if root is None:
        chain = [codec.encode(s) for s in _issue_down(specs, None)]
    else:
        chain = [codec.encode(s) for s in _issue_down(specs, root)]
        chain.append(root_authority.model_copy())
    logger.info("built certificate chain of length %d (external root: %s)",
                len(chain), root is not None)
    return chain


def make_chain(length: int, side: Side) -> CertChain:
    """Build a fresh self-rooted chain of `length` certs for one side. 0 -> []."""
    if not length:
        return []
    return build_chain(build_chain_spec(length, side))
