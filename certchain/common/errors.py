# certchain/common/errors.py
"""
Error kinds raised by certchain.

 - CryptoProviderError: the cryptography backend rejected an operation
 - CertGenerationError: building or signing a certificate failed
 - InvariantViolation: the caller passed an inconsistent value (a bug)
"""
import logging
from contextlib import contextmanager

from cryptography.exceptions import InternalError, UnsupportedAlgorithm

logger = logging.getLogger(__name__)

PROVIDER_ERRORS = (ValueError, UnsupportedAlgorithm, InternalError)
# cryptography also signals an unusable key object with TypeError; only calls
# that take keys from outside the library opt into translating it.
KEY_TYPE_ERRORS = PROVIDER_ERRORS + (TypeError,)


class CertChainError(Exception):
    """Base class for runtime failures of key/cert generation."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(f"{message}: {detail}" if detail else message)
        self.detail = detail


class CryptoProviderError(CertChainError):
    pass


class CertGenerationError(CertChainError):
    pass


class InvariantViolation(RuntimeError):
    """Programming error in the caller. Not meant to be caught and retried."""


@contextmanager
def provider_guard(what: str, error_cls=CryptoProviderError, catch=PROVIDER_ERRORS):
    """
    Translate exceptions from the cryptography backend into error_cls.
    `what` names the failed step; it must never contain key material.
    """
    try:
        yield
    except catch as e:
        logger.warning("key/cert generation failed at %s: %s", what, e)
        raise error_cls(what, str(e)) from e
