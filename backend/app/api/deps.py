from __future__ import annotations

from fastapi import Depends, Request

from backend.app.core.container import AppContainer
from backend.app.services.catalog_service import CatalogService
from backend.app.services.program_service import ProgramService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_catalog_service(container: AppContainer = Depends(get_container)) -> CatalogService:
    return container.catalog_service


def get_program_service(container: AppContainer = Depends(get_container)) -> ProgramService:
    return container.program_service
