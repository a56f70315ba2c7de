# service/mapping_service.py
import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, TypeVar
from config.settings import settings
from core.allocation import AllocationCoordinator
from model.mapping import Mapping
from repository.mapping_repository import MappingRepository
from util.enums import ErrorMessage
from util.errors import (
    AppError,
    InvalidInputError,
    MappingConflictError,
    StorageError,
    TargetNotFoundError,
)
from util.functions import split_namespace_list

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _required(name: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise AppError(
            f"Required parameter [{name}].", ErrorMessage.INVALID_INPUT.value.http_status
        )
    return value


class MappingService:
    """
    Request-level mapping operations for one authenticated app.

    Validates and normalizes input, applies the arbitrary-target policy,
    bounds every storage call with a timeout and turns engine errors into
    AppError with the matching HTTP status.
    """

    def __init__(
        self,
        mappings: MappingRepository,
        coordinator: AllocationCoordinator,
        arbitrary_target_mode: bool = settings.ARBITRARY_TARGET_MODE,
        timeout_seconds: float = settings.OPERATION_TIMEOUT_SECONDS,
    ) -> None:
        self._mappings = mappings
        self._coordinator = coordinator
        self._arbitrary = arbitrary_target_mode
        self._timeout = timeout_seconds
        self._normalizer = mappings.normalizer

    async def _call(self, op: str, app_id: str, aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("mapping.timeout op=%s app=%s", op, app_id)
            raise AppError(
                f"{op} timed out.", ErrorMessage.STORAGE_ERROR.value.http_status
            )
        except InvalidInputError as e:
            raise AppError(str(e), ErrorMessage.INVALID_INPUT.value.http_status)
        except MappingConflictError as e:
            raise AppError(
                str(e),
                ErrorMessage.MAPPING_CONFLICT.value.http_status,
                target=e.existing_target,
                ns=e.namespace,
            )
        except TargetNotFoundError as e:
            logger.info("mapping.target.unknown op=%s app=%s ns=%s", op, app_id, e.namespace)
            raise AppError(str(e), ErrorMessage.TARGET_NOT_FOUND.value.http_status)
        except StorageError as e:
            logger.error("mapping.storage.failed op=%s app=%s", op, app_id)
            raise AppError(str(e), ErrorMessage.STORAGE_ERROR.value.http_status)

    def _object_key(self, ns: str, obj: str) -> tuple:
        ns = self._normalizer.normalize_namespace(_required("ns", ns))
        obj = self._normalizer.normalize_mapping_object(ns, _required("from", obj))
        if not obj:
            raise AppError(
                f"Parameter [from] is not a valid identifier in namespace [{ns}].",
                ErrorMessage.INVALID_INPUT.value.http_status,
            )
        return ns, obj

    # ---------------- Operations ----------------

    async def get_mapping_for_object(self, app_id: str, ns: str, obj: str) -> Mapping:
        ns, obj = self._object_key(ns, obj)
        mapping = await self._call(
            "getMappingForObject",
            app_id,
            self._mappings.find_target_for_object(app_id, ns, obj),
        )
        if mapping is None:
            raise AppError(
                ErrorMessage.NOT_FOUND.value.message,
                ErrorMessage.NOT_FOUND.value.http_status,
            )
        return mapping

    async def map_object_to_target(
        self, app_id: str, ns: str, obj: str, target: str
    ) -> Mapping:
        ns, obj = self._object_key(ns, obj)
        target = self._normalizer.normalize_mapping_target(_required("to", target))
        return await self._call(
            "mapObjectToTarget", app_id, self._map(app_id, ns, obj, target)
        )

    async def _map(self, app_id: str, ns: str, obj: str, target: str) -> Mapping:
        if not self._arbitrary:
            # a brand-new target may only be introduced through allocation
            existing = await self._mappings.find_target_for_object(app_id, ns, obj)
            if existing is None:
                reverse = await self._mappings.find_objects_to_target(app_id, ns, target)
                if not reverse:
                    raise TargetNotFoundError(ns, target)
        return await self._mappings.map(app_id, ns, obj, target)

    async def unmap_object_to_target(
        self, app_id: str, ns: str, obj: str, target: str
    ) -> bool:
        ns, obj = self._object_key(ns, obj)
        target = self._normalizer.normalize_mapping_target(_required("to", target))
        removed = await self._call(
            "unmapObjectToTarget",
            app_id,
            self._mappings.unmap(app_id, ns, obj, target),
        )
        logger.info("mapping.unmap app=%s ns=%s removed=%s", app_id, ns, removed)
        return removed

    async def get_reverse_mappings_for_target(
        self, app_id: str, ns_list: str, target: str
    ) -> Dict[str, List[Mapping]]:
        target = self._normalizer.normalize_mapping_target(_required("to", target))
        namespaces: List[str] = []
        for raw in split_namespace_list(_required("ns", ns_list)):
            ns = self._normalizer.normalize_namespace(raw)
            if ns and ns not in namespaces:
                namespaces.append(ns)

        result: Dict[str, List[Mapping]] = {}
        for ns in namespaces:
            found = await self._call(
                "getReverseMappingsForTarget",
                app_id,
                self._mappings.find_objects_to_target(app_id, ns, target),
            )
            result[ns] = [found[obj] for obj in sorted(found)]
        return result

    async def allocate_target_and_map(
        self, app_id: str, pairs: Dict[str, str], target: Optional[str] = None
    ) -> str:
        if target is not None and not target.strip():
            target = None
        return await self._call(
            "allocateTargetAndMap",
            app_id,
            self._coordinator.allocate(app_id, pairs, candidate_target=target),
        )
