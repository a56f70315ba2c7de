# service/app_service.py
import logging
from typing import Any, Dict, List, Optional
from config.settings import settings
from core.ids import new_id
from model.app import App, AppInfo
from model.mapping import utc_now
from repository.app_repository import AppRepository
from repository.mapping_repository import MappingRepository
from util.enums import ErrorMessage
from util.errors import AppError, StorageError
from util.functions import hash_secret

logger = logging.getLogger(__name__)


def _fail(info: ErrorMessage, message: Optional[str] = None) -> AppError:
    return AppError(message or info.value.message, info.value.http_status)


class AppService:
    """
    Tenant registry operations. Only the system app may list, create or
    delete apps; an app may read and update its own record.
    Creating an app provisions its mapping partition, deleting it destroys it.
    """

    def __init__(
        self,
        apps: AppRepository,
        mappings: MappingRepository,
        system_app_id: str = settings.SYSTEM_APP_ID,
    ) -> None:
        self._apps = apps
        self._mappings = mappings
        self._system = system_app_id.strip().lower()

    @property
    def system_app_id(self) -> str:
        return self._system

    def _require_system(self, caller: App) -> None:
        if caller.id != self._system:
            raise _fail(ErrorMessage.NO_PERMISSION)

    def _require_system_or_owner(self, caller: App, app_id: str) -> None:
        if caller.id not in (self._system, app_id):
            raise _fail(ErrorMessage.NO_PERMISSION)

    async def _load(self, app_id: str) -> App:
        try:
            app = await self._apps.get(app_id)
        except StorageError as e:
            raise _fail(ErrorMessage.STORAGE_ERROR, str(e))
        if app is None:
            raise _fail(ErrorMessage.NOT_FOUND, f"App [{app_id}] not found.")
        return app

    async def bootstrap_system_app(self, secret: str = settings.SYSTEM_APP_SECRET) -> App:
        existing = await self._apps.get(self._system)
        if existing is not None:
            return existing
        logger.info("app.system.create app=%s", self._system)
        app = App(id=self._system, secret=hash_secret(self._system, secret))
        if not await self._apps.create(app):
            # another process won the race
            app = await self._apps.get(self._system) or app
        await self._mappings.init_storage(self._system)
        return app

    async def list_apps(self, caller: App) -> List[AppInfo]:
        self._require_system(caller)
        try:
            return [AppInfo.of(a) for a in await self._apps.get_all()]
        except StorageError as e:
            raise _fail(ErrorMessage.STORAGE_ERROR, str(e))

    async def create_app(
        self,
        caller: App,
        secret: str,
        app_id: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> str:
        self._require_system(caller)
        secret = (secret or "").strip()
        if not secret:
            raise _fail(ErrorMessage.INVALID_INPUT, "Parameter [secret] must not be empty.")
        app_id = (app_id or "").strip().lower() or new_id()

        try:
            existing = await self._apps.get(app_id)
            await self._mappings.init_storage(app_id)
            if existing is not None:
                raise _fail(ErrorMessage.APP_EXISTS, f"App [{app_id}] already existed.")
            app = App(id=app_id, secret=hash_secret(app_id, secret), config=config or {})
            created = await self._apps.create(app)
        except StorageError as e:
            raise _fail(ErrorMessage.STORAGE_ERROR, str(e))
        if not created:
            raise _fail(ErrorMessage.APP_EXISTS, f"App [{app_id}] already existed.")
        logger.info("app.created app=%s by=%s", app_id, caller.id)
        return app_id

    async def get_app(self, caller: App, app_id: str) -> AppInfo:
        app_id = (app_id or "").strip().lower()
        self._require_system_or_owner(caller, app_id)
        return AppInfo.of(await self._load(app_id))

    async def update_app(
        self,
        caller: App,
        app_id: str,
        secret: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        app_id = (app_id or "").strip().lower()
        self._require_system_or_owner(caller, app_id)
        app = await self._load(app_id)

        changes: Dict[str, Any] = {"t": utc_now(), "config": config or {}}
        if secret and secret.strip():
            changes["secret"] = hash_secret(app.id, secret.strip())
        try:
            updated = await self._apps.update(app.model_copy(update=changes))
        except StorageError as e:
            raise _fail(ErrorMessage.STORAGE_ERROR, str(e))
        if not updated:
            raise _fail(ErrorMessage.INTERNAL_ERROR, f"Cannot update app [{app_id}].")
        logger.info("app.updated app=%s by=%s", app_id, caller.id)

    async def delete_app(self, caller: App, app_id: str) -> None:
        self._require_system(caller)
        app_id = (app_id or "").strip().lower()
        if app_id == self._system:
            raise _fail(ErrorMessage.NO_PERMISSION, "The system app cannot be deleted.")
        app = await self._load(app_id)
        try:
            deleted = await self._apps.delete(app)
            if not deleted:
                raise _fail(ErrorMessage.INTERNAL_ERROR, f"Cannot delete app [{app_id}].")
            await self._mappings.destroy_storage(app.id)
        except StorageError as e:
            raise _fail(ErrorMessage.STORAGE_ERROR, str(e))
        logger.info("app.deleted app=%s by=%s", app_id, caller.id)
