import base64, hashlib, time
from datetime import datetime, timezone
from typing import Union

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode()

def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode(), validate=True)

def now_ms() -> int:
    return int(time.time() * 1000)

def sha256_hex(data: Union[bytes, str]) -> str:
    if isinstance(data, str): data = data.encode()
    return hashlib.sha256(data).hexdigest()

def datetime_to_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)

def parse_date_ms(value) -> int:
    """Epoch milliseconds from a date claim.

    Accepts a number of milliseconds, a string of digits, or an ISO-8601
    timestamp. Raises ValueError for anything else.
    """
    if isinstance(value, bool):
        raise ValueError("date claim must not be a boolean")
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date claim must be a number or a string")
    value = value.strip()
    if value.isdigit():
        return int(value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime_to_ms(datetime.fromisoformat(value))
