# repository/namespaces.py
from typing import Final
from urllib.parse import quote
from config.settings import settings

ROOT: Final[str] = settings.KEY_ROOT

APPS: Final[str] = f"{ROOT}:apps"
APPS_INDEX: Final[str] = f"{APPS}:index"  # set of every app id
MAPPINGS: Final[str] = f"{ROOT}:mappings"  # one partition per app below this


def segment(value: str) -> str:
    # Percent-encode so ':' and glob characters never leak into key structure
    return quote(value, safe="")


def partition_prefix(app_id: str) -> str:
    return f"{MAPPINGS}:{segment(app_id)}"
