# model/app.py
from datetime import datetime
from typing import Any, Dict
from pydantic import BaseModel, Field
from model.mapping import utc_now


class App(BaseModel):
    """Tenant record; `secret` holds the digest, never the raw secret."""

    id: str
    secret: str
    t: datetime = Field(default_factory=utc_now)
    config: Dict[str, Any] = Field(default_factory=dict)


class AppInfo(BaseModel):
    id: str
    t: datetime
    config: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, app: App) -> "AppInfo":
        return cls(id=app.id, t=app.t, config=app.config)
