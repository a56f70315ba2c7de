# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    INVALID_CREDENTIALS = ErrorInfo(
        "Invalid app id or access token", status.HTTP_401_UNAUTHORIZED
    )
    NO_PERMISSION = ErrorInfo(
        "No permission to perform this operation", status.HTTP_403_FORBIDDEN
    )
    NOT_FOUND = ErrorInfo("Not found", status.HTTP_404_NOT_FOUND)
    INVALID_INPUT = ErrorInfo("Invalid input", status.HTTP_400_BAD_REQUEST)
    MAPPING_CONFLICT = ErrorInfo(
        "Object has already mapped to another target", status.HTTP_409_CONFLICT
    )
    TARGET_NOT_FOUND = ErrorInfo(
        "Target not found and arbitrary target mode is disabled",
        status.HTTP_400_BAD_REQUEST,
    )
    APP_EXISTS = ErrorInfo("App already existed", status.HTTP_409_CONFLICT)
    STORAGE_ERROR = ErrorInfo("Storage error", status.HTTP_500_INTERNAL_SERVER_ERROR)
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_500_INTERNAL_SERVER_ERROR)
