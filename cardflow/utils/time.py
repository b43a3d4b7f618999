import time
from datetime import datetime, timezone

def now_ms() -> int:
    return int(time.time() * 1000)

def iso_from_ms(ms: int) -> str:
    """Epoch ms -> ISO-8601 UTC string with trailing 'Z' (scorer input format)."""
    dt = datetime.fromtimestamp(int(ms) / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
