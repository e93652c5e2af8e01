import io

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skillforge.core.cache import CacheClient, MemoryTTLCache
from skillforge.core.rate_limit import RateLimitMiddleware
from skillforge.core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from skillforge.services.storage_service import LocalObjectStorage, safe_filename


@pytest.mark.asyncio
async def test_memory_cache_expires_entries():
    cache = MemoryTTLCache()
    await cache.set("fresh", {"a": 1}, ttl_seconds=60)
    await cache.set("stale", {"a": 2}, ttl_seconds=-1)

    assert await cache.get("fresh") == {"a": 1}
    assert await cache.get("stale") is None


@pytest.mark.asyncio
async def test_cache_client_remember_calls_producer_once():
    cache = CacheClient(None)
    await cache.connect()
    calls = []

    async def produce():
        calls.append(1)
        return {"tags": ["python"]}

    assert cache.backend == "memory"
    assert await cache.remember("facets", produce, ttl_seconds=60) == {"tags": ["python"]}
    assert await cache.remember("facets", produce, ttl_seconds=60) == {"tags": ["python"]}
    assert len(calls) == 1

    await cache.delete("facets")
    await cache.remember("facets", produce, ttl_seconds=60)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_cache_client_falls_back_when_redis_is_unreachable():
    cache = CacheClient("redis://127.0.0.1:1/0")
    await cache.connect()

    assert cache.backend == "memory"
    await cache.set("k", "v", ttl_seconds=60)
    assert await cache.get("k") == "v"


def _limited_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limit=2, ai_limit=1, window_seconds=60)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/v1/contents")
    def contents():
        return {"items": []}

    @app.post("/api/v1/ai/chat")
    def chat():
        return {"answer": "hi"}

    return app


def test_rate_limit_uses_separate_buckets():
    client = TestClient(_limited_app())

    assert client.get("/api/v1/contents").status_code == 200
    assert client.get("/api/v1/contents").status_code == 200
    assert client.get("/api/v1/contents").status_code == 429

    assert client.post("/api/v1/ai/chat").status_code == 200
    blocked = client.post("/api/v1/ai/chat")
    assert blocked.status_code == 429
    assert "Too many requests" in blocked.json()["detail"]

    for _ in range(5):
        assert client.get("/health").status_code == 200


def test_storage_round_trip(tmp_path):
    storage = LocalObjectStorage(tmp_path, "/files/")

    stored = storage.save("content/text/u1/1_notes.txt", io.BytesIO(b"hello"))

    assert stored.size == 5
    assert stored.url == "/files/content/text/u1/1_notes.txt"
    assert storage.exists(stored.path)
    assert storage.delete(stored.path) is True
    assert storage.delete(stored.path) is False


def test_storage_rejects_keys_outside_root(tmp_path):
    storage = LocalObjectStorage(tmp_path / "root")

    with pytest.raises(ValueError):
        storage.save_bytes("../escape.txt", b"x")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("lecture 1.mp4", "lecture_1.mp4"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\notes.md", "notes.md"),
        (None, "upload"),
        ("...", "upload"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_password_hash_and_token():
    hashed = get_password_hash("supersecret1")

    assert verify_password("supersecret1", hashed)
    assert not verify_password("wrong-password", hashed)
    assert decode_access_token(create_access_token("user-1")) == "user-1"
    assert decode_access_token("not-a-token") is None


def test_only_model_calling_posts_use_the_ai_bucket():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limit=10, ai_limit=1, window_seconds=60)

    @app.post("/api/v1/plans")
    def create_plan():
        return {"ok": True}

    @app.post("/api/v1/plans/{plan_id}/milestones/{index}/toggle")
    def toggle(plan_id: str, index: int):
        return {"ok": True}

    @app.post("/api/v1/plans/{plan_id}/milestones/{index}/quiz-attempts")
    def attempt(plan_id: str, index: int):
        return {"ok": True}

    client = TestClient(app)
    toggles = [client.post("/api/v1/plans/p1/milestones/0/toggle").status_code for _ in range(3)]

    assert toggles == [200, 200, 200]
    assert client.post("/api/v1/plans").status_code == 200
    assert client.post("/api/v1/plans/p1/milestones/0/quiz-attempts").status_code == 429
