# =============================================================================
# tests/test_session_registry.py - Live Session Registry Tests
# =============================================================================

import re
import threading
from types import SimpleNamespace

import pytest

from agents.session_registry import SessionNotFoundError, SessionRegistry, new_session_key


def fake_session(key):
    return SimpleNamespace(key=key)


class TestSessionKeys:

    def test_format(self):
        assert re.fullmatch(r"chat_\d+_[0-9a-f]{8}", new_session_key())

    def test_unique(self):
        assert len({new_session_key() for _ in range(200)}) == 200


class TestSessionRegistry:

    def test_add_get_remove(self):
        registry = SessionRegistry()
        session = fake_session("chat_1")

        registry.add(session)
        assert registry.get("chat_1") is session
        assert "chat_1" in registry
        assert len(registry) == 1

        assert registry.remove("chat_1") is session
        assert "chat_1" not in registry

    def test_duplicate_key(self):
        registry = SessionRegistry()
        registry.add(fake_session("chat_1"))
        with pytest.raises(ValueError):
            registry.add(fake_session("chat_1"))

    def test_missing_key(self):
        registry = SessionRegistry()
        with pytest.raises(SessionNotFoundError) as exc_info:
            registry.get("chat_nope")
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "SESSION_NOT_FOUND"
        with pytest.raises(SessionNotFoundError):
            registry.remove("chat_nope")

    def test_concurrent_adds(self):
        registry = SessionRegistry()

        def add_many(prefix):
            for i in range(100):
                registry.add(fake_session(f"{prefix}_{i}"))

        threads = [threading.Thread(target=add_many, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 400
        assert len(set(registry.keys())) == 400
