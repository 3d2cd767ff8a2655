from __future__ import annotations

from backend.app.engine.block_graph import BlockGraph
from backend.app.models.ast import (
    Assignment,
    BinaryOperation,
    BinaryOperator,
    Identifier,
    IfStatement,
    Literal,
    LiteralType,
    ReadExpression,
    VariableDeclaration,
    WhileLoop,
    WriteStatement,
)
from backend.app.models.block import BlockCategory, BlockDefinition, BlockKind, DataType, SocketSpec
from backend.app.models.program import Connection
from backend.app.services.ast_builder import AstBuilder
from backend.app.services.catalog_service import CatalogService


def _graph(catalog: CatalogService | None = None) -> BlockGraph:
    return BlockGraph(catalog or CatalogService())


def _create(graph: BlockGraph, definition_id: str, **values: object):
    block = graph.create_block(definition_id)
    assert block is not None
    for socket_id, value in values.items():
        assert graph.set_value(block.uuid, socket_id, value).valid
    return block


def _chain(graph: BlockGraph, *blocks) -> None:
    for current, following in zip(blocks, blocks[1:]):
        assert graph.set_next(current.uuid, following.uuid).valid


def test_empty_graph_builds_empty_program() -> None:
    builder = AstBuilder(_graph())

    program = builder.build()

    assert program.body == []
    assert builder.diagnostics == []


def test_declaration_then_write_of_connected_sum() -> None:
    graph = _graph()
    declare = _create(graph, "var.declare", name="x", value=5)
    write = _create(graph, "io.write")
    add = _create(graph, "op.add", right=3)
    variable = _create(graph, "var.get", name="x")
    _chain(graph, declare, write)
    assert graph.connect(write.uuid, "value", add.uuid).valid
    assert graph.connect(add.uuid, "left", variable.uuid).valid

    program = AstBuilder(graph).build()

    assert program.body == [
        VariableDeclaration(
            name="x",
            initial_value=Literal(value=5, data_type=LiteralType.NUMBER, block_id=declare.uuid),
            block_id=declare.uuid,
        ),
        WriteStatement(
            value=BinaryOperation(
                operator=BinaryOperator.ADD,
                left=Identifier(name="x", block_id=variable.uuid),
                right=Literal(value=3, data_type=LiteralType.NUMBER, block_id=add.uuid),
                block_id=add.uuid,
            ),
            block_id=write.uuid,
        ),
    ]


def test_connection_takes_precedence_over_literal_value() -> None:
    graph = _graph()
    write = _create(graph, "io.write", value="ignored")
    text = _create(graph, "literal.text", value="usado")
    assert graph.connect(write.uuid, "value", text.uuid).valid

    statement = AstBuilder(graph).build().body[0]

    assert isinstance(statement, WriteStatement)
    assert statement.value == Literal(value="usado", data_type=LiteralType.TEXT, block_id=text.uuid)


def test_unconnected_sockets_use_defaults() -> None:
    graph = _graph()
    write = _create(graph, "io.write")
    declare = _create(graph, "var.declare", value="")
    assign = _create(graph, "var.set", name="y")
    condition = _create(graph, "control.if")
    loop = _create(graph, "control.while")
    _chain(graph, write, declare, assign, condition, loop)

    body = AstBuilder(graph).build().body

    assert body[0].value == Literal(value="", data_type=LiteralType.TEXT, block_id=write.uuid)
    assert body[1] == VariableDeclaration(name="variavel", initial_value=None, block_id=declare.uuid)
    assert body[2] == Assignment(
        name="y",
        value=Literal(value=0, data_type=LiteralType.NUMBER, block_id=assign.uuid),
        block_id=assign.uuid,
    )
    assert isinstance(body[3], IfStatement)
    assert body[3].condition == Literal(value=True, data_type=LiteralType.BOOLEAN, block_id=condition.uuid)
    assert body[3].consequent == []
    assert body[3].alternate is None
    assert isinstance(body[4], WhileLoop)
    assert body[4].body == []


def test_literal_coercion_keeps_numbers_and_booleans() -> None:
    graph = _graph()
    number = _create(graph, "io.write", value=2.5)
    flag = _create(graph, "io.write", value=False)
    text = _create(graph, "io.write", value="7")
    _chain(graph, number, flag, text)

    values = [statement.value for statement in AstBuilder(graph).build().body]

    assert [(value.value, value.data_type) for value in values] == [
        (2.5, LiteralType.NUMBER),
        (False, LiteralType.BOOLEAN),
        ("7", LiteralType.TEXT),
    ]


def test_read_expression_prompt_from_value_or_literal_connection() -> None:
    graph = _graph()
    first = _create(graph, "var.set", name="nome")
    second = _create(graph, "var.set", name="idade")
    third = _create(graph, "var.set", name="resposta")
    _chain(graph, first, second, third)

    read_value = _create(graph, "io.read", prompt="Seu nome?")
    read_connected = _create(graph, "io.read")
    prompt = _create(graph, "literal.text", value="Sua idade?")
    read_empty = _create(graph, "io.read")
    assert graph.connect(read_connected.uuid, "prompt", prompt.uuid).valid
    assert graph.connect(first.uuid, "value", read_value.uuid).valid
    assert graph.connect(second.uuid, "value", read_connected.uuid).valid
    assert graph.connect(third.uuid, "value", read_empty.uuid).valid

    body = AstBuilder(graph).build().body

    assert body[0].value == ReadExpression(prompt="Seu nome?", block_id=read_value.uuid)
    assert body[1].value == ReadExpression(prompt="Sua idade?", block_id=read_connected.uuid)
    assert body[2].value == ReadExpression(prompt=None, block_id=read_empty.uuid)


def test_read_prompt_ignores_non_literal_sources_with_diagnostic() -> None:
    graph = _graph()
    assign = _create(graph, "var.set", name="nome")
    read = _create(graph, "io.read")
    inner = _create(graph, "io.read", prompt="?")
    assert graph.connect(read.uuid, "prompt", inner.uuid).valid
    assert graph.connect(assign.uuid, "value", read.uuid).valid

    builder = AstBuilder(graph)
    body = builder.build().body

    assert body[0].value.prompt is None
    assert len(builder.diagnostics) == 1
    assert "prompt" in builder.diagnostics[0]


def test_comparison_operators_map_to_symbols() -> None:
    graph = _graph()
    condition = _create(graph, "control.while")
    greater = _create(graph, "op.compare.greater", right=10)
    counter = _create(graph, "var.get", name="contador")
    assert graph.connect(condition.uuid, "condition", greater.uuid).valid
    assert graph.connect(greater.uuid, "left", counter.uuid).valid

    loop = AstBuilder(graph).build().body[0]

    assert isinstance(loop, WhileLoop)
    assert loop.condition.operator == BinaryOperator.GREATER
    assert loop.condition.left == Identifier(name="contador", block_id=counter.uuid)


def test_unmapped_operator_falls_back_to_addition() -> None:
    modulo = BlockDefinition(
        id="op.modulo",
        category=BlockCategory.OPERATORS,
        kind=BlockKind.EXPRESSION,
        label="%",
        inputs=(
            SocketSpec(id="left", data_type=DataType.NUMBER),
            SocketSpec(id="right", data_type=DataType.NUMBER),
        ),
        output=SocketSpec(id="result", data_type=DataType.NUMBER),
    )
    catalog = CatalogService(definitions=[*CatalogService().list_definitions(), modulo])
    graph = _graph(catalog)
    write = _create(graph, "io.write")
    operation = _create(graph, "op.modulo", left=7, right=2)
    assert graph.connect(write.uuid, "value", operation.uuid).valid

    builder = AstBuilder(graph)
    statement = builder.build().body[0]

    assert statement.value.operator == BinaryOperator.ADD
    assert any("op.modulo" in message for message in builder.diagnostics)


def test_unknown_blocks_are_reported_not_fatal() -> None:
    custom_statement = BlockDefinition(
        id="io.beep",
        category=BlockCategory.IO,
        kind=BlockKind.STATEMENT,
        label="bipe",
        has_next=True,
        has_previous=True,
    )
    custom_expression = BlockDefinition(
        id="fn.random",
        category=BlockCategory.FUNCTIONS,
        kind=BlockKind.EXPRESSION,
        label="aleatório",
        inputs=(SocketSpec(id="value", data_type=DataType.NUMBER, required=False),),
        output=SocketSpec(id="result", data_type=DataType.NUMBER),
    )
    catalog = CatalogService(definitions=[*CatalogService().list_definitions(), custom_statement, custom_expression])
    graph = _graph(catalog)
    beep = _create(graph, "io.beep")
    write = _create(graph, "io.write")
    random = _create(graph, "fn.random", value=4)
    _chain(graph, beep, write)
    assert graph.connect(write.uuid, "value", random.uuid).valid

    builder = AstBuilder(graph)
    body = builder.build().body

    assert body == [
        WriteStatement(
            value=Literal(value=4, data_type=LiteralType.NUMBER, block_id=random.uuid),
            block_id=write.uuid,
        )
    ]
    assert len(builder.diagnostics) == 2
    assert "io.beep" in builder.diagnostics[0]
    assert "fn.random" in builder.diagnostics[1]


def test_chains_are_emitted_in_root_insertion_order() -> None:
    graph = _graph()
    second_root = _create(graph, "io.write", value="b")
    first_root = _create(graph, "io.write", value="a")
    follower = _create(graph, "io.write", value="a2")
    _chain(graph, first_root, follower)

    body = AstBuilder(graph).build().body

    assert [statement.value.value for statement in body] == ["b", "a", "a2"]


def test_self_dependent_expression_becomes_placeholder() -> None:
    graph = _graph()
    write = _create(graph, "io.write")
    outer = _create(graph, "op.add")
    inner = _create(graph, "op.add")
    assert graph.connect(write.uuid, "value", outer.uuid).valid
    assert graph.connect(outer.uuid, "left", inner.uuid).valid
    # Bypass validation to close the loop the way a corrupted state could.
    inner._attach(Connection(source_block_id=outer.uuid, target_block_id=inner.uuid, socket_id="left"))

    builder = AstBuilder(graph)
    statement = builder.build().body[0]

    assert statement.value.left.left == Literal(value="", data_type=LiteralType.TEXT, block_id=outer.uuid)
    assert statement.value.left.right == Literal(value=0, data_type=LiteralType.NUMBER, block_id=inner.uuid)
    assert len(builder.diagnostics) == 1
    assert "depends on itself" in builder.diagnostics[0]


def test_inclusive_comparisons_from_builtin_catalog() -> None:
    graph = _graph()
    first = _create(graph, "control.if")
    second = _create(graph, "control.while")
    _chain(graph, first, second)
    at_least = _create(graph, "op.compare.greater_equal", left=18, right=18)
    at_most = _create(graph, "op.compare.less_equal", left=1, right=2)
    assert graph.connect(first.uuid, "condition", at_least.uuid).valid
    assert graph.connect(second.uuid, "condition", at_most.uuid).valid

    builder = AstBuilder(graph)
    body = builder.build().body

    assert body[0].condition.operator == BinaryOperator.GREATER_EQUAL
    assert body[1].condition.operator == BinaryOperator.LESS_EQUAL
    assert builder.diagnostics == []
