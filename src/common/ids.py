import threading
import time
import uuid

_clock_lock = threading.Lock()
_last_clock_ms = 0


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


def clock_id() -> str:
    """Millisecond timestamp id, strictly increasing within the process."""
    global _last_clock_ms
    with _clock_lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms <= _last_clock_ms:
            now_ms = _last_clock_ms + 1
        _last_clock_ms = now_ms
        return str(now_ms)
