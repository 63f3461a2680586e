from rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_window_blocks_then_resets():
    clock = FakeClock()
    limiter = RateLimiter(interval_seconds=60, clock=clock)
    assert limiter.check(2, "1.2.3.4")
    assert limiter.check(2, "1.2.3.4")
    assert not limiter.check(2, "1.2.3.4")
    assert limiter.check(2, "5.6.7.8")

    clock.now = 61
    assert limiter.check(2, "1.2.3.4")


def test_stale_buckets_are_purged():
    clock = FakeClock()
    limiter = RateLimiter(interval_seconds=60, max_tokens=2, clock=clock)
    for token in ("a", "b", "c"):
        limiter.check(5, token)

    clock.now = 100
    limiter.check(5, "d")
    assert set(limiter._buckets) == {"d"}


def test_decorated_route_returns_429(client, monkeypatch):
    monkeypatch.setenv('RATE_LIMIT_PER_MINUTE', '2')
    assert client.post('/api/translate', json={}).status_code == 400
    assert client.post('/api/translate', json={}).status_code == 400

    blocked = client.post('/api/translate', json={})
    assert blocked.status_code == 429
    assert blocked.get_json() == {"success": False, "error": "Too many requests"}

    assert client.options('/api/translate').status_code == 200


def test_get_requests_are_not_counted(client, monkeypatch):
    monkeypatch.setenv('RATE_LIMIT_PER_MINUTE', '1')
    for _ in range(3):
        assert client.get('/api/translate').status_code == 200
    assert client.post('/api/image-generation', json={}).status_code == 400
    assert client.post('/api/image-generation', json={}).status_code == 429
    assert client.get('/api/image-generation').status_code == 200


def test_limit_is_per_client(client, monkeypatch):
    monkeypatch.setenv('RATE_LIMIT_PER_MINUTE', '1')
    assert client.post('/api/translate', json={}, headers={'X-Forwarded-For': '10.0.0.1'}).status_code == 400
    assert client.post('/api/translate', json={},
                       headers={'X-Forwarded-For': '10.0.0.2, 10.0.0.9'}).status_code == 400
    assert client.post('/api/translate', json={}, headers={'X-Forwarded-For': '10.0.0.1'}).status_code == 429
