# model/mapping.py
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Mapping(BaseModel):
    """
    One {object -> target} binding inside an app's namespace.
    Serialized with the short wire names: app, ns, from, to, t.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    app: str
    ns: str
    from_: str = Field(alias="from")
    to: str
    t: datetime = Field(default_factory=utc_now)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
