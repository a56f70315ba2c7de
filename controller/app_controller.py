# controller/app_controller.py
import time
from fastapi import APIRouter, Depends, status
from config.settings import settings
from model.api import (
    AppListResponse,
    CreateAppRequest,
    CreateAppResponse,
    InfoResponse,
    OkResponse,
    UpdateAppRequest,
)
from model.app import App, AppInfo
from service.app_service import AppService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_app_service,
    get_current_app,
    rate_limits,
)

app_router = APIRouter(dependencies=rate_limits())

_started = time.monotonic()


@app_router.get(InternalURIs.INFO, response_model=InfoResponse)
async def info(_: App = Depends(get_current_app)) -> InfoResponse:
    uptime = int(time.monotonic() - _started)
    return InfoResponse(
        name=settings.APP_NAME,
        version=settings.APP_VERSION,
        uptime=f"{uptime // 3600}h{uptime % 3600 // 60}m{uptime % 60}s",
        arbitraryTargetMode=settings.ARBITRARY_TARGET_MODE,
    )


@app_router.get(InternalURIs.APPS, response_model=AppListResponse)
async def list_apps(
    caller: App = Depends(get_current_app),
    service: AppService = Depends(get_app_service),
) -> AppListResponse:
    return AppListResponse(apps=await service.list_apps(caller))


@app_router.post(
    InternalURIs.APPS,
    response_model=CreateAppResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_app(
    payload: CreateAppRequest,
    caller: App = Depends(get_current_app),
    service: AppService = Depends(get_app_service),
) -> CreateAppResponse:
    app_id = await service.create_app(
        caller, payload.secret, app_id=payload.id, config=payload.extra_config()
    )
    return CreateAppResponse(id=app_id)


@app_router.get(InternalURIs.APP, response_model=AppInfo)
async def get_app(
    app_id: str,
    caller: App = Depends(get_current_app),
    service: AppService = Depends(get_app_service),
) -> AppInfo:
    return await service.get_app(caller, app_id)


@app_router.post(InternalURIs.APP, response_model=OkResponse)
async def update_app(
    app_id: str,
    payload: UpdateAppRequest,
    caller: App = Depends(get_current_app),
    service: AppService = Depends(get_app_service),
) -> OkResponse:
    await service.update_app(
        caller, app_id, secret=payload.secret, config=payload.extra_config()
    )
    return OkResponse(ok=True)


@app_router.post(InternalURIs.APP_DELETE, response_model=OkResponse)
async def delete_app(
    app_id: str,
    caller: App = Depends(get_current_app),
    service: AppService = Depends(get_app_service),
) -> OkResponse:
    await service.delete_app(caller, app_id)
    return OkResponse(ok=True)
