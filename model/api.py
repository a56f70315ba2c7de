# model/api.py
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from model.app import AppInfo
from model.mapping import Mapping


class ObjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ns: str = ""
    from_: str = Field(default="", alias="from")


class MappingRequest(ObjectRequest):
    to: str = ""


class ReverseMappingsRequest(BaseModel):
    ns: str = ""
    to: str = ""


class MappingResponse(BaseModel):
    mapping: Mapping


class UnmapResponse(BaseModel):
    ok: bool
    removed: bool


class ReverseMappingsResponse(BaseModel):
    mappings: Dict[str, List[Mapping]]


class AllocateResponse(BaseModel):
    target: str


class CreateAppRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    secret: str = ""

    def extra_config(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class UpdateAppRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    secret: Optional[str] = None

    def extra_config(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CreateAppResponse(BaseModel):
    id: str


class AppListResponse(BaseModel):
    apps: List[AppInfo]


class OkResponse(BaseModel):
    ok: bool


class InfoResponse(BaseModel):
    name: str
    version: str
    uptime: str
    arbitraryTargetMode: bool
