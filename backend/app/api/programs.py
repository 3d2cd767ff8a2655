from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from backend.app.api.deps import get_program_service
from backend.app.models.program import (
    CompileResponse,
    ProgramCreateRequest,
    ProgramListItem,
    ProgramResponse,
    ProgramUpdateRequest,
)
from backend.app.services.program_service import ProgramService

router = APIRouter(prefix="/programs", tags=["programs"])


@router.post("", response_model=ProgramResponse, status_code=201)
async def create_program(
    request: ProgramCreateRequest,
    programs: ProgramService = Depends(get_program_service),
) -> ProgramResponse:
    return programs.create_program(request)


@router.get("", response_model=list[ProgramListItem])
async def list_programs(programs: ProgramService = Depends(get_program_service)) -> list[ProgramListItem]:
    return programs.list_programs()


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(program_id: str, programs: ProgramService = Depends(get_program_service)) -> ProgramResponse:
    return programs.get_program(program_id)


@router.put("/{program_id}", response_model=ProgramResponse)
async def update_program(
    program_id: str,
    request: ProgramUpdateRequest,
    programs: ProgramService = Depends(get_program_service),
) -> ProgramResponse:
    return programs.update_program(program_id, request)


@router.delete("/{program_id}", status_code=204)
async def delete_program(program_id: str, programs: ProgramService = Depends(get_program_service)) -> Response:
    programs.delete_program(program_id)
    return Response(status_code=204)


@router.post("/{program_id}/compile", response_model=CompileResponse)
async def compile_program(
    program_id: str,
    programs: ProgramService = Depends(get_program_service),
) -> CompileResponse:
    return programs.compile_program(program_id)
