from __future__ import annotations

import logging

from backend.app.engine.block_graph import Block, BlockGraph
from backend.app.models.ast import (
    Assignment,
    BinaryOperation,
    BinaryOperator,
    Expression,
    Identifier,
    IfStatement,
    Literal,
    LiteralType,
    Program,
    ReadExpression,
    Statement,
    VariableDeclaration,
    WhileLoop,
    WriteStatement,
)
from backend.app.models.program import BlockValue

logger = logging.getLogger(__name__)

OPERATOR_TABLE: dict[str, BinaryOperator] = {
    "op.add": BinaryOperator.ADD,
    "op.subtract": BinaryOperator.SUBTRACT,
    "op.multiply": BinaryOperator.MULTIPLY,
    "op.divide": BinaryOperator.DIVIDE,
    "op.compare.equal": BinaryOperator.EQUAL,
    "op.compare.greater": BinaryOperator.GREATER,
    "op.compare.less": BinaryOperator.LESS,
    "op.compare.greater_equal": BinaryOperator.GREATER_EQUAL,
    "op.compare.less_equal": BinaryOperator.LESS_EQUAL,
}
# Operator blocks missing from OPERATOR_TABLE render as additions.
FALLBACK_OPERATOR = BinaryOperator.ADD

DEFAULT_VARIABLE_NAME = "variavel"
LITERAL_BLOCK_DEFAULTS: dict[str, BlockValue] = {
    "literal.number": 0,
    "literal.text": "",
    "literal.boolean": False,
}


class AstBuilder:
    """Turns a block graph into a :class:`Program`.

    Statements come from the sequential chains, in root insertion order;
    expressions are built by following data connections upstream. Unset and
    unconnected sockets fall back to fixed defaults, and blocks that cannot be
    translated are skipped or replaced by a placeholder literal. Every such
    case is recorded in ``diagnostics`` instead of aborting the build.
    """

    def __init__(self, graph: BlockGraph) -> None:
        self._graph = graph
        self._visiting: set[str] = set()
        self.diagnostics: list[str] = []

    def build(self) -> Program:
        self.diagnostics = []
        self._visiting.clear()

        body: list[Statement] = []
        for root in self._graph.root_blocks():
            body.extend(self._build_statement_chain(root))
        return Program(body=body)

    def _build_statement_chain(self, start: Block) -> list[Statement]:
        statements: list[Statement] = []
        for block in self._graph.chain(start.uuid):
            statement = self._build_statement(block)
            if statement is not None:
                statements.append(statement)
        return statements

    def _build_statement(self, block: Block) -> Statement | None:
        match block.definition.id:
            case "io.write":
                return self._build_write(block)
            case "var.declare":
                return self._build_variable_declaration(block)
            case "var.set":
                return self._build_assignment(block)
            case "control.if":
                return self._build_if(block)
            case "control.while":
                return self._build_while(block)
            case definition_id:
                self._warn(block, f"unknown statement block '{definition_id}' skipped.")
                return None

    def _build_expression(self, block: Block) -> Expression:
        if block.uuid in self._visiting:
            self._warn(block, "expression depends on itself; using an empty placeholder.")
            return Literal(value="", data_type=LiteralType.TEXT, block_id=block.uuid)

        self._visiting.add(block.uuid)
        try:
            return self._dispatch_expression(block)
        finally:
            self._visiting.discard(block.uuid)

    def _dispatch_expression(self, block: Block) -> Expression:
        match block.definition.id:
            case "io.read":
                return self._build_read(block)
            case "var.get":
                return Identifier(name=self._variable_name(block), block_id=block.uuid)
            case "literal.number" | "literal.text" | "literal.boolean" as definition_id:
                value = block.get_value("value")
                if value is None:
                    value = LITERAL_BLOCK_DEFAULTS[definition_id]
                return self._literal(value, block.uuid)
            case definition_id if definition_id.startswith("op."):
                return self._build_binary_operation(block)
            case definition_id:
                self._warn(block, f"unknown expression block '{definition_id}'; using its value as a literal.")
                value = block.get_value("value")
                return self._literal("" if value is None else value, block.uuid)

    # ---- statements ------------------------------------------------------

    def _build_write(self, block: Block) -> WriteStatement:
        return WriteStatement(value=self._socket_expression(block, "value", ""), block_id=block.uuid)

    def _build_variable_declaration(self, block: Block) -> VariableDeclaration:
        initial_value: Expression | None = None
        source = self._connected_source(block, "value")
        if source is not None:
            initial_value = self._build_expression(source)
        else:
            value = block.get_value("value")
            if value is not None and value != "":
                initial_value = self._literal(value, block.uuid)

        return VariableDeclaration(
            name=self._variable_name(block),
            initial_value=initial_value,
            block_id=block.uuid,
        )

    def _build_assignment(self, block: Block) -> Assignment:
        return Assignment(
            name=self._variable_name(block),
            value=self._socket_expression(block, "value", 0),
            block_id=block.uuid,
        )

    def _build_if(self, block: Block) -> IfStatement:
        # Nested bodies are not populated from the canvas yet.
        return IfStatement(
            condition=self._socket_expression(block, "condition", True),
            consequent=[],
            block_id=block.uuid,
        )

    def _build_while(self, block: Block) -> WhileLoop:
        return WhileLoop(
            condition=self._socket_expression(block, "condition", True),
            body=[],
            block_id=block.uuid,
        )

    # ---- expressions -----------------------------------------------------

    def _build_read(self, block: Block) -> ReadExpression:
        prompt: str | None = None
        source = self._connected_source(block, "prompt")
        if source is not None:
            expression = self._build_expression(source)
            if isinstance(expression, Literal):
                prompt = str(expression.value)
            else:
                self._warn(block, "prompt must be a literal text; the connected expression was ignored.")
        else:
            value = block.get_value("prompt")
            if value:
                prompt = str(value)

        return ReadExpression(prompt=prompt, block_id=block.uuid)

    def _build_binary_operation(self, block: Block) -> BinaryOperation:
        operator = OPERATOR_TABLE.get(block.definition.id)
        if operator is None:
            self._warn(block, f"no operator mapped for '{block.definition.id}'; using '{FALLBACK_OPERATOR}'.")
            operator = FALLBACK_OPERATOR

        return BinaryOperation(
            operator=operator,
            left=self._socket_expression(block, "left", 0),
            right=self._socket_expression(block, "right", 0),
            block_id=block.uuid,
        )

    def _socket_expression(self, block: Block, socket_id: str, default: BlockValue) -> Expression:
        source = self._connected_source(block, socket_id)
        if source is not None:
            return self._build_expression(source)

        value = block.get_value(socket_id)
        return self._literal(default if value is None else value, block.uuid)

    def _connected_source(self, block: Block, socket_id: str) -> Block | None:
        connection = block.get_connection(socket_id)
        if connection is None:
            return None
        source = self._graph.get_block(connection.source_block_id)
        if source is None:
            self._warn(block, f"socket '{socket_id}' is connected to missing block '{connection.source_block_id}'.")
        return source

    @staticmethod
    def _variable_name(block: Block) -> str:
        value = block.get_value("name")
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_VARIABLE_NAME

    @staticmethod
    def _literal(value: BlockValue, block_id: str | None = None) -> Literal:
        if isinstance(value, bool):
            return Literal(value=value, data_type=LiteralType.BOOLEAN, block_id=block_id)
        if isinstance(value, int | float):
            return Literal(value=value, data_type=LiteralType.NUMBER, block_id=block_id)
        return Literal(value="" if value is None else str(value), data_type=LiteralType.TEXT, block_id=block_id)

    def _warn(self, block: Block, message: str) -> None:
        diagnostic = f"Block '{block.uuid}' ({block.definition.id}): {message}"
        self.diagnostics.append(diagnostic)
        logger.warning("AST build: %s", diagnostic)
