# controller/controller_dependencies.py
from typing import List
from fastapi import Depends, Header, Request, Response
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from core.allocation import AllocationCoordinator
from model.app import App
from repository.app_repository import AppRepository
from repository.mapping_repository import MappingRepository
from service.app_service import AppService
from service.auth_service import AuthService
from service.mapping_service import MappingService
from util.constants import Headers


async def client_identity(request: Request) -> str:
    # Unauthenticated traffic is keyed by client ip only; headers are untrusted here
    ip = request.client.host if request.client else "unknown"
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            ip = fwd.split(",")[0].strip()
    return f"ip:{ip}:{request.scope['path']}"


async def app_identity(request: Request) -> str:
    """Key for the per-app limit; only set once the caller is authenticated."""
    return f"app:{request.state.app_id}:{request.scope['path']}"


_app_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES,
    seconds=settings.RATE_LIMIT_SECONDS,
    identifier=app_identity,
)


def rate_limits() -> List:
    """Router-level dependencies; empty when rate limiting is switched off."""
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES,
                seconds=settings.RATE_LIMIT_SECONDS,
                identifier=client_identity,
            )
        )
    ]


def get_mapping_repository() -> MappingRepository:
    return MappingRepository()


def get_app_repository() -> AppRepository:
    return AppRepository()


def get_mapping_service(
    mappings: MappingRepository = Depends(get_mapping_repository),
) -> MappingService:
    return MappingService(mappings, AllocationCoordinator(mappings))


def get_app_service(
    apps: AppRepository = Depends(get_app_repository),
    mappings: MappingRepository = Depends(get_mapping_repository),
) -> AppService:
    return AppService(apps, mappings)


def get_auth_service(apps: AppRepository = Depends(get_app_repository)) -> AuthService:
    return AuthService(apps)


async def get_current_app(
    request: Request,
    response: Response,
    x_app_id: str = Header("", alias=Headers.APP_ID),
    x_access_token: str = Header("", alias=Headers.ACCESS_TOKEN),
    auth: AuthService = Depends(get_auth_service),
) -> App:
    app = await auth.authenticate(x_app_id, x_access_token)
    if settings.RATE_LIMIT_ENABLED:
        request.state.app_id = app.id
        await _app_limiter(request, response)
    return app
