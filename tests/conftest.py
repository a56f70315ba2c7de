"""Shared fixtures: environment, an in-memory Redis and ready-made repositories."""

from __future__ import annotations

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("SYSTEM_APP_SECRET", "syst3m")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ARBITRARY_TARGET_MODE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fakeredis import FakeAsyncRedis

from config.cache import set_redis
from core.allocation import AllocationCoordinator
from repository.app_repository import AppRepository
from repository.mapping_repository import MappingRepository, PartitionInitCache

APP_ID = "shop"
OTHER_APP_ID = "blog"
SYSTEM_SECRET = os.environ["SYSTEM_APP_SECRET"]


@pytest.fixture
async def redis():
    client = FakeAsyncRedis()
    await client.flushall()
    set_redis(client)
    yield client
    await client.flushall()
    set_redis(None)
    await client.aclose()


@pytest.fixture
def init_cache() -> PartitionInitCache:
    return PartitionInitCache()


@pytest.fixture
def repo(redis, init_cache) -> MappingRepository:
    return MappingRepository(init_cache=init_cache)


@pytest.fixture
def apps(redis) -> AppRepository:
    return AppRepository()


@pytest.fixture
def coordinator(repo) -> AllocationCoordinator:
    minted = iter(f"minted-{i}" for i in range(1, 1000))
    return AllocationCoordinator(repo, id_generator=lambda: next(minted))
