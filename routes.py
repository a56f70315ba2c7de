# routes.py
from fastapi import FastAPI
from controller.app_controller import app_router
from controller.mapping_controller import mapping_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(mapping_router)
    app.include_router(app_router)
