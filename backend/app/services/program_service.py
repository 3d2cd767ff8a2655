from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import HTTPException

from backend.app.models.program import (
    CompileResponse,
    ProgramCreateRequest,
    ProgramDocument,
    ProgramGraph,
    ProgramListItem,
    ProgramResponse,
    ProgramUpdateRequest,
)
from backend.app.services.compiler_service import CompilationError, CompilerService
from backend.app.storage.repositories.program_repository import ProgramRepository

logger = logging.getLogger(__name__)


class ProgramService:
    def __init__(self, repository: ProgramRepository, compiler_service: CompilerService):
        self._repository = repository
        self._compiler_service = compiler_service

    def create_program(self, request: ProgramCreateRequest) -> ProgramResponse:
        now = datetime.now(timezone.utc)
        document = ProgramDocument(
            id=str(uuid4()),
            name=request.name,
            description=request.description,
            schema_version=request.schema_version,
            graph=request.graph,
            created_at=now,
            updated_at=now,
        )
        self._repository.create(document)
        logger.info("Created program '%s' (%d blocks)", document.id, len(document.graph.blocks))
        return ProgramResponse.model_validate(document.model_dump())

    def get_program(self, program_id: str) -> ProgramResponse:
        return ProgramResponse.model_validate(self.get_program_document(program_id).model_dump())

    def get_program_document(self, program_id: str) -> ProgramDocument:
        document = self._repository.get(program_id)
        if not document:
            raise HTTPException(status_code=404, detail=f"Program '{program_id}' not found")
        return document

    def list_programs(self) -> list[ProgramListItem]:
        documents = self._repository.list()
        return [
            ProgramListItem(
                id=document.id,
                name=document.name,
                description=document.description,
                schema_version=document.schema_version,
                block_count=len(document.graph.blocks),
                updated_at=document.updated_at,
            )
            for document in documents
        ]

    def update_program(self, program_id: str, request: ProgramUpdateRequest) -> ProgramResponse:
        existing = self.get_program_document(program_id)

        updated = ProgramDocument(
            id=existing.id,
            name=request.name if request.name is not None else existing.name,
            description=request.description if request.description is not None else existing.description,
            schema_version=request.schema_version if request.schema_version is not None else existing.schema_version,
            graph=request.graph if request.graph is not None else existing.graph,
            created_at=existing.created_at,
            updated_at=datetime.now(timezone.utc),
        )

        persisted = self._repository.update(program_id, updated)
        if not persisted:
            raise HTTPException(status_code=404, detail=f"Program '{program_id}' not found")

        return ProgramResponse.model_validate(persisted.model_dump())

    def delete_program(self, program_id: str) -> None:
        deleted = self._repository.delete(program_id)
        if not deleted:
            raise HTTPException(status_code=404, detail=f"Program '{program_id}' not found")

    def compile_program(self, program_id: str) -> CompileResponse:
        document = self.get_program_document(program_id)
        return self.compile_graph(document.graph, program_id=document.id)

    def compile_graph(self, graph: ProgramGraph, program_id: str | None = None) -> CompileResponse:
        try:
            artifact = self._compiler_service.compile_state(graph.blocks)
        except CompilationError as error:
            logger.warning("Compilation of program '%s' failed: %s", program_id, " | ".join(error.diagnostics))
            raise HTTPException(status_code=422, detail={"diagnostics": error.diagnostics}) from error

        return CompileResponse(
            program_id=program_id,
            code=artifact.code,
            diagnostics=artifact.diagnostics,
            evaluation_order=artifact.evaluation_order,
        )
