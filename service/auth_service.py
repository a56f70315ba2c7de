# service/auth_service.py
import logging
from model.app import App
from repository.app_repository import AppRepository
from util.enums import ErrorMessage
from util.errors import AppError, StorageError
from util.functions import verify_secret

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authenticates an app by id + access token against the tenant registry.
    """

    def __init__(self, apps: AppRepository) -> None:
        self._apps = apps

    async def authenticate(self, app_id: str, access_token: str) -> App:
        app_id = (app_id or "").strip().lower()
        if not app_id or not access_token:
            logger.warning("auth.missing_credentials")
            raise AppError(
                ErrorMessage.INVALID_CREDENTIALS.value.message,
                ErrorMessage.INVALID_CREDENTIALS.value.http_status,
            )

        try:
            app = await self._apps.get(app_id)
        except StorageError:
            logger.error("auth.app.load_error app=%s", app_id)
            raise AppError(
                ErrorMessage.STORAGE_ERROR.value.message,
                ErrorMessage.STORAGE_ERROR.value.http_status,
            )

        if app is None or not verify_secret(app.id, access_token, app.secret):
            logger.warning("auth.invalid app=%s", app_id)
            raise AppError(
                ErrorMessage.INVALID_CREDENTIALS.value.message,
                ErrorMessage.INVALID_CREDENTIALS.value.http_status,
            )

        logger.debug("auth.ok app=%s", app.id)
        return app
