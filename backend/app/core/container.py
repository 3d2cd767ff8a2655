from __future__ import annotations

from dataclasses import dataclass

from backend.app.core.config import Settings
from backend.app.services.catalog_service import CatalogService
from backend.app.services.compiler_service import CompilerService
from backend.app.services.program_service import ProgramService
from backend.app.storage.db import Database
from backend.app.storage.repositories.program_repository import ProgramRepository


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    database: Database
    program_repository: ProgramRepository
    catalog_service: CatalogService
    compiler_service: CompilerService
    program_service: ProgramService
