from __future__ import annotations

import argparse
import os
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import blocks, compiler, programs
from backend.app.core.config import Settings, get_settings
from backend.app.core.container import AppContainer
from backend.app.core.logging import configure_logging
from backend.app.services.catalog_service import CatalogService
from backend.app.services.compiler_service import CompilerService
from backend.app.services.program_service import ProgramService
from backend.app.storage.db import Database
from backend.app.storage.repositories.program_repository import ProgramRepository


def _build_container(settings: Settings) -> AppContainer:
    if settings.database_url.startswith("sqlite:///"):
        db_path = Path(settings.database_url.replace("sqlite:///", "", 1))
        db_path.parent.mkdir(parents=True, exist_ok=True)

    database = Database(settings.database_url)
    database.create_all()

    program_repository = ProgramRepository(database.session)
    catalog_service = CatalogService()
    compiler_service = CompilerService(catalog_service=catalog_service, indent=settings.code_indent)
    program_service = ProgramService(repository=program_repository, compiler_service=compiler_service)

    return AppContainer(
        settings=settings,
        database=database,
        program_repository=program_repository,
        catalog_service=catalog_service,
        compiler_service=compiler_service,
        program_service=program_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.debug)
    app.state.container = _build_container(settings)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(blocks.router, prefix=settings.api_prefix)
    app.include_router(programs.router, prefix=settings.api_prefix)
    app.include_router(compiler.router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health() -> dict[str, str | int]:
        catalog = app.state.container.catalog_service
        return {
            "status": "ok",
            "version": settings.app_version,
            "block_definitions": len(catalog.list_definitions()),
        }

    return app


app = create_app()


def run() -> None:
    parser = argparse.ArgumentParser(description="Run the Blockcode backend")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--reload", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--access-log", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    args = parser.parse_args()

    if args.debug is True:
        os.environ["BLOCKCODE_DEBUG"] = "1"
    elif args.debug is False:
        os.environ["BLOCKCODE_DEBUG"] = "0"

    get_settings.cache_clear()
    globals()["app"] = create_app()

    uvicorn.run(
        "backend.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=args.access_log,
    )


if __name__ == "__main__":
    run()
