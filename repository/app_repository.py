# repository/app_repository.py
from typing import Final, List, Optional
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from config.cache import get_redis
from model.app import App
from repository.namespaces import APPS, APPS_INDEX, segment
from util.errors import StorageError
import logging

KEY_PREFIX: Final[str] = APPS

logger = logging.getLogger(__name__)


class AppRepository:
    """
    Tenant registry. One JSON document per app plus a set of ids for listing.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(app_id: str) -> str:
        return f"{KEY_PREFIX}:{segment(app_id)}"

    @staticmethod
    def _parse(raw: Optional[bytes]) -> Optional[App]:
        if raw is None:
            return None
        try:
            return App.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Corrupted app record: {e}") from e

    async def create(self, app: App) -> bool:
        """Persist a new app; (False) if an app with the same id already exists."""
        try:
            r = await self._client()
            created = await r.set(self._key(app.id), app.model_dump_json(), nx=True)
            if created:
                await r.sadd(APPS_INDEX, app.id)
        except RedisError as e:
            logger.error("app.create.error app=%s err=%s", app.id, type(e).__name__)
            raise StorageError(f"Cannot create app [{app.id}]: {e}") from e
        return bool(created)

    async def get(self, app_id: str) -> Optional[App]:
        if not app_id:
            return None
        try:
            r = await self._client()
            raw = await r.get(self._key(app_id))
        except RedisError as e:
            logger.error("app.get.error app=%s err=%s", app_id, type(e).__name__)
            raise StorageError(f"Cannot load app [{app_id}]: {e}") from e
        return self._parse(raw)

    async def get_all(self) -> List[App]:
        try:
            r = await self._client()
            ids = sorted(
                v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)
                for v in await r.smembers(APPS_INDEX)
            )
            raws = await r.mget([self._key(i) for i in ids]) if ids else []
        except RedisError as e:
            logger.error("app.list.error err=%s", type(e).__name__)
            raise StorageError(f"Cannot list apps: {e}") from e
        return [app for app in (self._parse(raw) for raw in raws) if app is not None]

    async def update(self, app: App) -> bool:
        """Overwrite an existing app; (False) if it does not exist."""
        try:
            r = await self._client()
            updated = await r.set(self._key(app.id), app.model_dump_json(), xx=True)
        except RedisError as e:
            logger.error("app.update.error app=%s err=%s", app.id, type(e).__name__)
            raise StorageError(f"Cannot update app [{app.id}]: {e}") from e
        return bool(updated)

    async def delete(self, app: App) -> bool:
        try:
            r = await self._client()
            async with r.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(app.id))
                pipe.srem(APPS_INDEX, app.id)
                removed, _ = await pipe.execute()
        except RedisError as e:
            logger.error("app.delete.error app=%s err=%s", app.id, type(e).__name__)
            raise StorageError(f"Cannot delete app [{app.id}]: {e}") from e
        return int(removed) > 0
