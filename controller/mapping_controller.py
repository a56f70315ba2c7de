# controller/mapping_controller.py
from typing import Dict, Optional, Union
from fastapi import APIRouter, Body, Depends, Query
from model.api import (
    AllocateResponse,
    MappingRequest,
    MappingResponse,
    ObjectRequest,
    ReverseMappingsRequest,
    ReverseMappingsResponse,
    UnmapResponse,
)
from model.app import App
from service.mapping_service import MappingService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_current_app,
    get_mapping_service,
    rate_limits,
)

mapping_router = APIRouter(dependencies=rate_limits())


@mapping_router.post(InternalURIs.GET_MAPPING, response_model=MappingResponse)
async def get_mapping_for_object(
    payload: ObjectRequest,
    app: App = Depends(get_current_app),
    service: MappingService = Depends(get_mapping_service),
) -> MappingResponse:
    mapping = await service.get_mapping_for_object(app.id, payload.ns, payload.from_)
    return MappingResponse(mapping=mapping)


@mapping_router.post(InternalURIs.MAP, response_model=MappingResponse)
async def map_object_to_target(
    payload: MappingRequest,
    app: App = Depends(get_current_app),
    service: MappingService = Depends(get_mapping_service),
) -> MappingResponse:
    mapping = await service.map_object_to_target(
        app.id, payload.ns, payload.from_, payload.to
    )
    return MappingResponse(mapping=mapping)


@mapping_router.post(InternalURIs.UNMAP, response_model=UnmapResponse)
async def unmap_object_to_target(
    payload: MappingRequest,
    app: App = Depends(get_current_app),
    service: MappingService = Depends(get_mapping_service),
) -> UnmapResponse:
    removed = await service.unmap_object_to_target(
        app.id, payload.ns, payload.from_, payload.to
    )
    return UnmapResponse(ok=True, removed=removed)


@mapping_router.post(InternalURIs.REVERSE_MAPPINGS, response_model=ReverseMappingsResponse)
async def get_reverse_mappings_for_target(
    payload: ReverseMappingsRequest,
    app: App = Depends(get_current_app),
    service: MappingService = Depends(get_mapping_service),
) -> ReverseMappingsResponse:
    found = await service.get_reverse_mappings_for_target(app.id, payload.ns, payload.to)
    return ReverseMappingsResponse(mappings=found)


@mapping_router.post(InternalURIs.ALLOCATE, response_model=AllocateResponse)
async def allocate_target_and_map(
    payload: Dict[str, Union[str, int]] = Body(...),
    to: Optional[str] = Query(None),
    app: App = Depends(get_current_app),
    service: MappingService = Depends(get_mapping_service),
) -> AllocateResponse:
    pairs = {ns: str(obj) for ns, obj in payload.items()}
    target = await service.allocate_target_and_map(app.id, pairs, target=to)
    return AllocateResponse(target=target)
