# util/errors.py
from typing import Any, List, Optional, Tuple
from fastapi import HTTPException, status


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_400_BAD_REQUEST,
        **extra: Any,
    ) -> None:
        detail: Any = {"message": message, **extra} if extra else message
        super().__init__(status_code=http_status, detail=detail)


# ---------------- Mapping engine errors ----------------


class MappingError(Exception):
    """Base class of everything the mapping engine raises on purpose."""


class InvalidInputError(MappingError):
    pass


class TargetNotFoundError(MappingError):
    def __init__(self, namespace: str, target: str) -> None:
        super().__init__(
            f"Target [{target}] not found in namespace [{namespace}] "
            "and arbitrary target mode is disabled."
        )
        self.namespace = namespace
        self.target = target


class MappingConflictError(MappingError):
    """
    An object is already bound to a different target.

    `existing_target` is the target the caller ran into first; `conflicts`
    lists every (namespace, object, existing_target) found by the same check.
    """

    def __init__(
        self,
        namespace: str,
        obj: str,
        existing_target: str,
        conflicts: Optional[List[Tuple[str, str, str]]] = None,
    ) -> None:
        super().__init__(
            f"[{obj}] has already mapped to another target in namespace [{namespace}]."
        )
        self.namespace = namespace
        self.obj = obj
        self.existing_target = existing_target
        self.conflicts = conflicts or [(namespace, obj, existing_target)]


class StorageError(MappingError):
    pass


class ConcurrentUpdateError(StorageError):
    # A watched key changed between read and commit; the caller may retry.
    pass
