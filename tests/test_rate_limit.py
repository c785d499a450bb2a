# tests/test_rate_limit.py
from weddingsite import rate_limit


def _clock(monkeypatch, start=1000.0):
    now = {"t": start}
    monkeypatch.setattr(rate_limit, "_now", lambda: now["t"])
    return now


def test_sliding_window_blocks_and_recovers(monkeypatch):
    now = _clock(monkeypatch)
    assert rate_limit.is_allowed("login:1.2.3.4", 2, 10)
    assert rate_limit.is_allowed("login:1.2.3.4", 2, 10)
    assert not rate_limit.is_allowed("login:1.2.3.4", 2, 10)
    assert rate_limit.retry_after("login:1.2.3.4", 10) == 11

    now["t"] += 10
    assert rate_limit.is_allowed("login:1.2.3.4", 2, 10)


def test_idle_keys_are_purged(monkeypatch):
    now = _clock(monkeypatch)
    rate_limit.is_allowed("api:10.0.0.1", 5, 30)
    rate_limit.is_allowed("api:10.0.0.2", 5, 300)
    now["t"] += 100
    rate_limit.is_allowed("api:10.0.0.3", 5, 30)
    # 10.0.0.2 sigue dentro de su ventana de 300 s
    assert set(rate_limit._BUCKETS) == {"api:10.0.0.2", "api:10.0.0.3"}


def test_non_positive_limit_disables_checks():
    assert all(rate_limit.is_allowed("x", 0, 10) for _ in range(5))
