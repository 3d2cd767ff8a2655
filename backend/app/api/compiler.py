from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_program_service
from backend.app.models.program import CompileResponse, ProgramGraph
from backend.app.services.program_service import ProgramService

router = APIRouter(tags=["compile"])


@router.post("/compile", response_model=CompileResponse)
async def compile_graph(
    graph: ProgramGraph,
    programs: ProgramService = Depends(get_program_service),
) -> CompileResponse:
    return programs.compile_graph(graph)
