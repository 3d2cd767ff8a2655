from __future__ import annotations

import logging
from typing import Iterable

from backend.app.engine.block_graph import BlockGraph, GraphStateError
from backend.app.models.program import BlockState, CompileArtifact
from backend.app.services.ast_builder import AstBuilder
from backend.app.services.catalog_service import CatalogService
from backend.app.services.code_emitter import DEFAULT_INDENT, CodeEmitter

logger = logging.getLogger(__name__)


class CompilationError(Exception):
    def __init__(self, diagnostics: list[str]):
        self.diagnostics = diagnostics
        super().__init__("Program compilation failed")


class CompilerService:
    def __init__(self, catalog_service: CatalogService, indent: str = DEFAULT_INDENT) -> None:
        self._catalog_service = catalog_service
        self._indent = indent

    def new_graph(self) -> BlockGraph:
        return BlockGraph(self._catalog_service)

    def compile_state(self, states: Iterable[BlockState]) -> CompileArtifact:
        graph = self.new_graph()
        try:
            diagnostics = graph.restore(states)
        except GraphStateError as error:
            raise CompilationError([str(error)]) from error

        artifact = self.compile_graph(graph)
        artifact.diagnostics = [*diagnostics, *artifact.diagnostics]
        return artifact

    def compile_graph(self, graph: BlockGraph) -> CompileArtifact:
        diagnostics: list[str] = []

        ordering = graph.evaluation_order()
        if not ordering.is_complete:
            # Partial result: the blocks involved are still visited by the
            # AST builder, which guards against re-entrant expressions.
            message = (
                "Data connections contain a cycle; "
                f"unordered blocks: {', '.join(ordering.residue)}."
            )
            logger.warning("Compile: %s", message)
            diagnostics.append(message)

        builder = AstBuilder(graph)
        program = builder.build()
        diagnostics.extend(builder.diagnostics)

        code = CodeEmitter(indent=self._indent).generate(program)
        logger.debug(
            "Compiled %d blocks into %d statements (%d diagnostics)",
            len(graph),
            len(program.body),
            len(diagnostics),
        )
        return CompileArtifact(code=code, diagnostics=diagnostics, evaluation_order=ordering.order)
