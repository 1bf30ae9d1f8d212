# certchain/storage/bundle.py
"""
Write generated chains to PEM files and read a root authority back.

write_chain(chain, "server") produces in CERTS_DIR:
  server_cert.pem   leaf certificate
  server_key.pem    leaf private key (mode 0600)
  server_chain.pem  every certificate, leaf first
  server_ca.pem     root certificate
"""
import logging
import os
from typing import Dict

from certchain.common import config
from certchain.common.protocol import CertAndKeyEncoded, CertChain
from certchain.crypto.codec import concat_chain

logger = logging.getLogger(__name__)


def _write(path: str, data: bytes, private: bool = False) -> str:
    if not private:
        with open(path, "wb") as f:
            f.write(data)
        return path
    # created owner-only; fchmod tightens a file that already existed
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        os.fchmod(f.fileno(), 0o600)
        f.write(data)
    return path


def write_cert_and_key(encoded: CertAndKeyEncoded, name: str, out_dir: str = None) -> Dict[str, str]:
    out_dir = out_dir or config.CERTS_DIR
    os.makedirs(out_dir, exist_ok=True)
    return {
        "cert": _write(os.path.join(out_dir, f"{name}_cert.pem"), encoded.cert_pem),
        "key": _write(os.path.join(out_dir, f"{name}_key.pem"), encoded.private_key_pem, private=True),
    }


def write_chain(chain: CertChain, name: str, out_dir: str = None) -> Dict[str, str]:
    """Write leaf cert/key, the chain bundle and the root cert. Returns the paths."""
    if not chain:
        raise ValueError("cannot write an empty chain")
    out_dir = out_dir or config.CERTS_DIR
    paths = write_cert_and_key(chain[0], name, out_dir)
    paths["chain"] = _write(os.path.join(out_dir, f"{name}_chain.pem"), concat_chain(chain))
    paths["ca"] = _write(os.path.join(out_dir, f"{name}_ca.pem"), chain[-1].cert_pem)
    logger.info("wrote %s chain of length %d to %s", name, len(chain), out_dir)
    return paths


def read_cert_and_key(cert_path: str, key_path: str) -> CertAndKeyEncoded:
    """Load a PEM cert/key pair from disk, e.g. an existing root authority."""
    if not os.path.exists(cert_path):
        raise FileNotFoundError(f"certificate not found at {cert_path}")
    if not os.path.exists(key_path):
        raise FileNotFoundError(f"private key not found at {key_path}")
    with open(cert_path, "rb") as f:
        cert_pem = f.read()
    with open(key_path, "rb") as f:
        key_pem = f.read()
    return CertAndKeyEncoded(cert_pem=cert_pem, private_key_pem=key_pem)
