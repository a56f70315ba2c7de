# repository/mapping_repository.py
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import (
    AsyncIterator,
    Dict,
    Final,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError
from config.cache import get_redis
from config.settings import settings
from core.normalizer import DEFAULT_NORMALIZER, IdentifierNormalizer
from model.mapping import Mapping, utc_now
from repository.namespaces import partition_prefix, segment
from util.errors import (
    ConcurrentUpdateError,
    InvalidInputError,
    MappingConflictError,
    StorageError,
)

logger = logging.getLogger(__name__)

LAYOUT_VERSION: Final[str] = "1"
SCAN_BATCH: Final[int] = 500

# (normalized namespace, normalized object)
Pair = Tuple[str, str]


class PartitionInitCache:
    """
    Process-local record of partitions already provisioned.
    Advisory only: a miss re-runs the idempotent provisioning.
    """

    def __init__(self) -> None:
        self._known: Set[str] = set()

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._known

    def add(self, app_id: str) -> None:
        self._known.add(app_id)

    def discard(self, app_id: str) -> None:
        self._known.discard(app_id)

    def clear(self) -> None:
        self._known.clear()


_init_cache = PartitionInitCache()


def _decode(v: object) -> str:
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)


@contextmanager
def _storage_errors(op: str, app_id: str) -> Iterator[None]:
    try:
        yield
    except WatchError:
        raise
    except RedisError as e:
        logger.error(
            "mapping.storage.error op=%s app=%s err=%s", op, app_id, type(e).__name__
        )
        raise StorageError(f"{op} failed for app [{app_id}]: {e}") from e


class MappingTransaction:
    """
    Optimistic transaction over one app partition.

    load() WATCHes every object key it reads; commit() queues the writes in
    MULTI/EXEC, which Redis drops as a whole if a watched key changed since.
    """

    def __init__(self, repo: "MappingRepository", pipe: Pipeline, app_id: str) -> None:
        self._repo = repo
        self._pipe = pipe
        self._app_id = app_id

    async def load(self, pairs: Iterable[Pair]) -> Dict[Pair, Optional[Mapping]]:
        pairs = list(pairs)
        if not pairs:
            return {}
        keys = [self._repo.object_key(self._app_id, ns, obj) for ns, obj in pairs]
        with _storage_errors("load", self._app_id):
            await self._pipe.watch(*keys)
            raws = await self._pipe.mget(keys)
        return {pair: self._repo.parse(raw) for pair, raw in zip(pairs, raws)}

    async def commit(
        self, create: Sequence[Mapping] = (), delete: Sequence[Mapping] = ()
    ) -> None:
        if not create and not delete:
            return
        repo, app_id = self._repo, self._app_id
        self._pipe.multi()
        for m in create:
            self._pipe.set(repo.object_key(app_id, m.ns, m.from_), m.to_json())
            self._pipe.sadd(repo.target_key(app_id, m.ns, m.to), m.from_)
        for m in delete:
            self._pipe.delete(repo.object_key(app_id, m.ns, m.from_))
            self._pipe.srem(repo.target_key(app_id, m.ns, m.to), m.from_)
        try:
            with _storage_errors("commit", app_id):
                await self._pipe.execute()
        except WatchError as e:
            raise ConcurrentUpdateError(
                f"Concurrent update on app [{app_id}], transaction discarded."
            ) from e


class MappingRepository:
    """
    Redis-backed many-to-one mapping store, one partition per app.

    Layout under mom:mappings:{app}:
      meta                 partition marker (layout version, creation time)
      obj:{ns}:{object}    JSON Mapping; key uniqueness is the (ns, object) unique index
      tgt:{ns}:{target}    set of objects; the (ns, target) index
    """

    def __init__(
        self,
        normalizer: IdentifierNormalizer = DEFAULT_NORMALIZER,
        init_cache: Optional[PartitionInitCache] = None,
        max_attempts: int = settings.MAP_MAX_ATTEMPTS,
    ) -> None:
        self._normalizer = normalizer
        self._init_cache = init_cache if init_cache is not None else _init_cache
        self._max_attempts = max(2, int(max_attempts))

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @property
    def normalizer(self) -> IdentifierNormalizer:
        return self._normalizer

    # ---------------- Keys ----------------

    @staticmethod
    def meta_key(app_id: str) -> str:
        return f"{partition_prefix(app_id)}:meta"

    @staticmethod
    def object_key(app_id: str, ns: str, obj: str) -> str:
        return f"{partition_prefix(app_id)}:obj:{segment(ns)}:{segment(obj)}"

    @staticmethod
    def target_key(app_id: str, ns: str, target: str) -> str:
        return f"{partition_prefix(app_id)}:tgt:{segment(ns)}:{segment(target)}"

    @staticmethod
    def parse(raw: Optional[bytes]) -> Optional[Mapping]:
        if raw is None:
            return None
        try:
            return Mapping.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Corrupted mapping record: {e}") from e

    def _normalize(self, namespace: str, obj: str) -> Pair:
        ns = self._normalizer.normalize_namespace(namespace)
        return ns, self._normalizer.normalize_mapping_object(ns, obj)

    # ---------------- Partition lifecycle ----------------

    async def init_storage(self, app_id: str) -> None:
        if app_id in self._init_cache:
            return
        meta = self.meta_key(app_id)
        with _storage_errors("init_storage", app_id):
            r = await self._client()
            created = await r.hsetnx(meta, "v", LAYOUT_VERSION)
            await r.hsetnx(meta, "t", utc_now().isoformat())
        if created:
            logger.info("mapping.storage.created app=%s", app_id)
        self._init_cache.add(app_id)

    async def destroy_storage(self, app_id: str) -> int:
        pattern = f"{partition_prefix(app_id)}:*"
        deleted = 0
        with _storage_errors("destroy_storage", app_id):
            r = await self._client()
            batch: List[bytes] = []
            async for key in r.scan_iter(match=pattern, count=SCAN_BATCH):
                batch.append(key)
                if len(batch) >= SCAN_BATCH:
                    deleted += int(await r.delete(*batch))
                    batch = []
            if batch:
                deleted += int(await r.delete(*batch))
        self._init_cache.discard(app_id)
        logger.info("mapping.storage.destroyed app=%s keys=%d", app_id, deleted)
        return deleted

    @asynccontextmanager
    async def transaction(self, app_id: str) -> AsyncIterator[MappingTransaction]:
        with _storage_errors("transaction", app_id):
            r = await self._client()
            pipe = r.pipeline(transaction=True)
        try:
            yield MappingTransaction(self, pipe, app_id)
        finally:
            with _storage_errors("transaction.reset", app_id):
                await pipe.reset()

    # ---------------- Lookups ----------------

    async def find_target_for_object(
        self, app_id: str, namespace: str, obj: str
    ) -> Optional[Mapping]:
        ns, obj = self._normalize(namespace, obj)
        with _storage_errors("find_target_for_object", app_id):
            r = await self._client()
            raw = await r.get(self.object_key(app_id, ns, obj))
        return self.parse(raw)

    async def find_objects_to_target(
        self, app_id: str, namespace: str, target: str
    ) -> Dict[str, Mapping]:
        ns = self._normalizer.normalize_namespace(namespace)
        target = self._normalizer.normalize_mapping_target(target)
        with _storage_errors("find_objects_to_target", app_id):
            r = await self._client()
            members = await r.smembers(self.target_key(app_id, ns, target))
            if not members:
                return {}
            objs = sorted(_decode(m) for m in members)
            raws = await r.mget([self.object_key(app_id, ns, o) for o in objs])
        result: Dict[str, Mapping] = {}
        for raw in raws:
            m = self.parse(raw)
            # the index entry and the record are written together, this only skips strays
            if m is not None and m.to == target:
                result[m.from_] = m
        return result

    # ---------------- Writes ----------------

    async def map(self, app_id: str, namespace: str, obj: str, target: str) -> Mapping:
        """
        Bind obj to target. Returns the stored Mapping (new or pre-existing with
        the same target); raises MappingConflictError if obj is bound elsewhere.

        {no record} -> insert -> {inserted}
                             \\-> lost race -> re-read -> same target | conflict
        """
        ns, obj = self._normalize(namespace, obj)
        target = self._normalizer.normalize_mapping_target(target)
        if not (app_id and ns and obj and target):
            raise InvalidInputError("app, namespace, object and target are required.")

        await self.init_storage(app_id)
        for attempt in range(1, self._max_attempts + 1):
            async with self.transaction(app_id) as tx:
                existing = (await tx.load([(ns, obj)]))[(ns, obj)]
                if existing is not None:
                    if existing.to == target:
                        return existing
                    logger.info(
                        "mapping.conflict app=%s ns=%s attempt=%d", app_id, ns, attempt
                    )
                    raise MappingConflictError(ns, obj, existing.to)

                mapping = Mapping(app=app_id, ns=ns, from_=obj, to=target)
                try:
                    await tx.commit(create=[mapping])
                except ConcurrentUpdateError:
                    logger.info(
                        "mapping.map.lost_race app=%s ns=%s attempt=%d",
                        app_id,
                        ns,
                        attempt,
                    )
                    continue
                logger.debug("mapping.created app=%s ns=%s", app_id, ns)
                return mapping

        logger.warning("mapping.map.contention app=%s ns=%s", app_id, ns)
        raise StorageError(
            f"Could not map object in namespace [{ns}] after {self._max_attempts} attempts."
        )

    async def unmap(self, app_id: str, namespace: str, obj: str, target: str) -> bool:
        """Delete the mapping only if it currently points at target."""
        ns, obj = self._normalize(namespace, obj)
        target = self._normalizer.normalize_mapping_target(target)

        for attempt in range(1, self._max_attempts + 1):
            async with self.transaction(app_id) as tx:
                existing = (await tx.load([(ns, obj)]))[(ns, obj)]
                if existing is None or existing.to != target:
                    return False
                try:
                    await tx.commit(delete=[existing])
                except ConcurrentUpdateError:
                    logger.info(
                        "mapping.unmap.lost_race app=%s ns=%s attempt=%d",
                        app_id,
                        ns,
                        attempt,
                    )
                    continue
                logger.debug("mapping.removed app=%s ns=%s", app_id, ns)
                return True

        raise StorageError(
            f"Could not unmap object in namespace [{ns}] after {self._max_attempts} attempts."
        )
