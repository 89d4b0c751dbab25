import time

import pytest
from limits.storage import MemoryStorage

from src.data.rate_limit import ClientRateLimiter


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def limiter(storage):
    return ClientRateLimiter(storage, tokens=3, window_seconds=60)


class TestClientRateLimiter:
    def test_new_key_starts_full(self, limiter):
        assert limiter.remaining("1.2.3.4") == 3

    def test_capacity_then_reject(self, limiter):
        assert [limiter.allow("1.2.3.4") for _ in range(4)] == [True, True, True, False]
        assert limiter.remaining("1.2.3.4") == 0

    def test_keys_independent(self, limiter):
        for _ in range(3):
            limiter.allow("1.2.3.4")
        assert not limiter.allow("1.2.3.4")
        assert limiter.allow("5.6.7.8")
        assert limiter.remaining("5.6.7.8") == 2

    def test_limiters_share_storage(self, storage):
        first = ClientRateLimiter(storage, tokens=2)
        second = ClientRateLimiter(storage, tokens=2)
        assert first.allow("client")
        assert second.allow("client")
        assert not first.allow("client")

    def test_namespaces_are_separate(self, storage):
        api = ClientRateLimiter(storage, tokens=1, namespace="api")
        chat = ClientRateLimiter(storage, tokens=1, namespace="chat")
        assert api.allow("client")
        assert chat.allow("client")
        assert not api.allow("client")

    def test_window_resets(self, storage):
        limiter = ClientRateLimiter(storage, tokens=1, window_seconds=1)
        assert limiter.allow("client")
        assert not limiter.allow("client")
        time.sleep(1.1)
        assert limiter.allow("client")

    def test_reset_at_is_in_window(self, limiter):
        limiter.allow("client")
        now = time.time()
        assert now < limiter.reset_at("client") <= now + 61

    def test_clear(self, limiter):
        for _ in range(3):
            limiter.allow("client")
        limiter.clear("client")
        assert limiter.remaining("client") == 3
