from __future__ import annotations

from decimal import Decimal

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

DEFAULT_INDENT = "  "
EMPTY_PROGRAM_COMMENT = "// Arraste blocos para o canvas para começar"
EMPTY_BODY_COMMENT = "// Adicione blocos aqui"
TRUE_KEYWORD = "verdadeiro"
FALSE_KEYWORD = "falso"

OPERATOR_SYMBOLS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.GREATER: ">",
    BinaryOperator.LESS: "<",
    BinaryOperator.GREATER_EQUAL: ">=",
    BinaryOperator.LESS_EQUAL: "<=",
}


class CodeEmitter:
    """Renders a :class:`Program` as Portugol source text."""

    def __init__(self, indent: str = DEFAULT_INDENT) -> None:
        self._indent_unit = indent
        self._indent_level = 0

    def generate(self, program: Program) -> str:
        lines = ["programa {", f"{self._indent_unit}funcao inicio() {{"]

        self._indent_level = 2
        if not program.body:
            lines.append(self._indent(EMPTY_PROGRAM_COMMENT))
        else:
            for statement in program.body:
                lines.extend(self._statement(statement))
        self._indent_level = 0

        lines.extend([f"{self._indent_unit}}}", "}"])
        return "\n".join(lines)

    def _statement(self, statement: Statement) -> list[str]:
        match statement:
            case WriteStatement(value=value):
                return [self._indent(f"escreva({self._expression(value)})")]
            case VariableDeclaration(name=name, initial_value=None):
                return [self._indent(f"var {name}")]
            case VariableDeclaration(name=name, initial_value=initial_value):
                return [self._indent(f"var {name} = {self._expression(initial_value)}")]
            case Assignment(name=name, value=value):
                return [self._indent(f"{name} = {self._expression(value)}")]
            case IfStatement():
                return self._if(statement)
            case WhileLoop():
                return self._while(statement)
        raise TypeError(f"Unsupported statement node: {type(statement).__name__}")

    def _if(self, statement: IfStatement) -> list[str]:
        lines = [self._indent(f"se ({self._expression(statement.condition)}) entao {{")]
        lines.extend(self._block(statement.consequent))
        if statement.alternate:
            lines.append(self._indent("} senao {"))
            lines.extend(self._block(statement.alternate))
        lines.append(self._indent("}"))
        return lines

    def _while(self, statement: WhileLoop) -> list[str]:
        lines = [self._indent(f"enquanto ({self._expression(statement.condition)}) faca {{")]
        lines.extend(self._block(statement.body))
        lines.append(self._indent("}"))
        return lines

    def _block(self, statements: list[Statement]) -> list[str]:
        self._indent_level += 1
        try:
            if not statements:
                return [self._indent(EMPTY_BODY_COMMENT)]
            lines: list[str] = []
            for statement in statements:
                lines.extend(self._statement(statement))
            return lines
        finally:
            self._indent_level -= 1

    def _expression(self, expression: Expression) -> str:
        match expression:
            case Literal():
                return self._literal(expression)
            case Identifier(name=name):
                return name
            case ReadExpression(prompt=None) | ReadExpression(prompt=""):
                return "leia()"
            case ReadExpression(prompt=prompt):
                return f'leia("{escape_text(prompt)}")'
            case BinaryOperation(operator=operator, left=left, right=right):
                symbol = OPERATOR_SYMBOLS.get(operator, str(operator))
                return f"({self._expression(left)} {symbol} {self._expression(right)})"
        raise TypeError(f"Unsupported expression node: {type(expression).__name__}")

    @staticmethod
    def _literal(literal: Literal) -> str:
        if literal.data_type == LiteralType.TEXT:
            return f'"{escape_text(str(literal.value))}"'
        if literal.data_type == LiteralType.BOOLEAN:
            return TRUE_KEYWORD if literal.value else FALSE_KEYWORD
        return format_number(literal.value)

    def _indent(self, text: str) -> str:
        return f"{self._indent_unit * self._indent_level}{text}"


def escape_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_number(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)
