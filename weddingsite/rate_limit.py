# weddingsite/rate_limit.py
# =================================================================================
# 🚦 Rate limit ligero en memoria
# ---------------------------------------------------------------------------------
# - Ventana deslizante por clave ("<ámbito>:<ip>").
# - Las claves sin peticiones vigentes se purgan periódicamente.
# - Solo válido en despliegues de un único proceso.
# =================================================================================

import os
import time
from collections import deque
from typing import Dict, Tuple

from loguru import logger

SWEEP_INTERVAL_S = 60

_BUCKETS: Dict[str, deque] = {}
_WINDOWS: Dict[str, int] = {}
_last_sweep = 0.0


def _now() -> float:
    return time.time()


def _sweep(now: float) -> None:
    """Elimina las claves cuya última petición ya salió de su ventana."""
    global _last_sweep
    if now - _last_sweep < SWEEP_INTERVAL_S:
        return
    _last_sweep = now
    stale = [
        key for key, bucket in _BUCKETS.items()
        if not bucket or bucket[-1] <= now - _WINDOWS.get(key, 0)
    ]
    for key in stale:
        _BUCKETS.pop(key, None)
        _WINDOWS.pop(key, None)


def is_allowed(key: str, max_req: int, window_s: int) -> bool:
    """True si la acción está permitida para 'key' según (max_req / window_s)."""
    if max_req <= 0:
        return True

    now = _now()
    _sweep(now)
    bucket = _BUCKETS.setdefault(key, deque())
    _WINDOWS[key] = window_s

    cutoff = now - window_s
    while bucket and bucket[0] <= cutoff:
        bucket.popleft()

    if len(bucket) >= max_req:
        logger.warning("Rate limit hit for key='{}' ({}/{} in {}s)", key, len(bucket), max_req, window_s)
        return False

    bucket.append(now)
    return True


def retry_after(key: str, window_s: int) -> int:
    """Segundos hasta que expire la petición más antigua de la ventana."""
    bucket = _BUCKETS.get(key)
    if not bucket:
        return 0
    return max(int(bucket[0] + window_s - _now()) + 1, 1)


def get_limits_from_env(prefix: str, default_max: int, default_window: int) -> Tuple[int, int]:
    """Lee {prefix}_MAX y {prefix}_WINDOW (segundos); defaults si faltan o no son enteros."""
    try:
        max_req = int(os.getenv(f"{prefix}_MAX", str(default_max)))
        window = int(os.getenv(f"{prefix}_WINDOW", str(default_window)))
    except ValueError:
        max_req, window = default_max, default_window
    return max_req, window


def reset() -> None:
    global _last_sweep
    _BUCKETS.clear()
    _WINDOWS.clear()
    _last_sweep = 0.0
