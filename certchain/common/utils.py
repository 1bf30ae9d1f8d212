# certchain/common/utils.py
import datetime
from typing import Union


def utcnow() -> datetime.datetime:
    """Current UTC time truncated to whole seconds (X.509 time precision)."""
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)

def offset_from(base: datetime.datetime, seconds: int) -> datetime.datetime:
    """Return base shifted by a signed number of seconds."""
    return base + datetime.timedelta(seconds=seconds)

def to_bytes(data: Union[str, bytes]) -> bytes:
    """Accept PEM given as str or bytes and return bytes."""
    if isinstance(data, str):
        return data.encode("ascii")
    return bytes(data)
