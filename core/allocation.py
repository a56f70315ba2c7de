# core/allocation.py
"""
Atomic multi-namespace allocation.

Binds one target to several (namespace, object) pairs of an app in a single
store transaction: every pair is read under WATCH, any pair bound to another
target aborts the whole call, otherwise the missing bindings are written in
one MULTI/EXEC. A concurrent write to any watched key discards the EXEC and
the check is re-run from a fresh read.
"""
import logging
from typing import Callable, Dict, List, Optional
from config.settings import settings
from core.ids import new_id
from model.mapping import Mapping
from repository.mapping_repository import MappingRepository
from util.errors import (
    ConcurrentUpdateError,
    InvalidInputError,
    MappingConflictError,
    StorageError,
)
from util.timing import timed

logger = logging.getLogger(__name__)


class AllocationCoordinator:
    def __init__(
        self,
        repository: MappingRepository,
        id_generator: Callable[[], str] = new_id,
        max_attempts: int = settings.ALLOCATE_MAX_ATTEMPTS,
    ) -> None:
        self._repo = repository
        self._new_id = id_generator
        self._max_attempts = max(1, int(max_attempts))

    def normalize_pairs(self, pairs: Dict[str, str]) -> Dict[str, str]:
        """
        Canonicalize {namespace: object}. Raw namespaces that collapse to the
        same canonical one must agree on the object.
        """
        if not pairs:
            raise InvalidInputError("At least one {namespace: object} pair is required.")
        normalizer = self._repo.normalizer
        out: Dict[str, str] = {}
        for raw_ns, raw_obj in pairs.items():
            ns = normalizer.normalize_namespace(raw_ns)
            if not ns:
                raise InvalidInputError("Namespace must not be empty.")
            obj = normalizer.normalize_mapping_object(ns, raw_obj)
            if not obj:
                raise InvalidInputError(f"Object in namespace [{ns}] must not be empty.")
            if out.get(ns, obj) != obj:
                raise InvalidInputError(
                    f"Namespace [{ns}] is given more than once with different objects."
                )
            out[ns] = obj
        return out

    def mint_target(self) -> str:
        return self._repo.normalizer.normalize_mapping_target(self._new_id())

    async def allocate(
        self, app_id: str, pairs: Dict[str, str], candidate_target: Optional[str] = None
    ) -> str:
        """
        Bind every pair to candidate_target (minted when None) and return it.

        Raises MappingConflictError, reporting the first pair (by namespace)
        already bound to a different target; nothing is written in that case.
        """
        normalized = sorted(self.normalize_pairs(pairs).items())
        if candidate_target is None:
            target = self.mint_target()
        else:
            target = self._repo.normalizer.normalize_mapping_target(candidate_target)
        if not target:
            raise InvalidInputError("Target must not be empty.")

        await self._repo.init_storage(app_id)
        with timed(logger, "allocation.allocate", app=app_id, pairs=len(normalized)):
            for attempt in range(1, self._max_attempts + 1):
                async with self._repo.transaction(app_id) as tx:
                    current = await tx.load(normalized)

                    conflicts = [
                        (ns, obj, m.to)
                        for (ns, obj), m in current.items()
                        if m is not None and m.to != target
                    ]
                    if conflicts:
                        ns, obj, existing = conflicts[0]
                        logger.info(
                            "allocation.conflict app=%s ns=%s conflicts=%d",
                            app_id,
                            ns,
                            len(conflicts),
                        )
                        raise MappingConflictError(ns, obj, existing, conflicts)

                    missing: List[Mapping] = [
                        Mapping(app=app_id, ns=ns, from_=obj, to=target)
                        for (ns, obj), m in current.items()
                        if m is None
                    ]
                    try:
                        await tx.commit(create=missing)
                    except ConcurrentUpdateError:
                        logger.info(
                            "allocation.retry app=%s attempt=%d", app_id, attempt
                        )
                        continue

                    logger.info(
                        "allocation.ok app=%s created=%d reused=%d",
                        app_id,
                        len(missing),
                        len(current) - len(missing),
                    )
                    return target

        logger.warning("allocation.contention app=%s", app_id)
        raise StorageError(
            f"Could not allocate target after {self._max_attempts} attempts."
        )
