"""Intermediate program tree produced from a block graph and rendered by the emitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class LiteralType(StrEnum):
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"


class BinaryOperator(StrEnum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EQUAL = "=="
    GREATER = ">"
    LESS = "<"
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="


@dataclass(slots=True)
class Literal:
    value: str | int | float | bool
    data_type: LiteralType
    block_id: str | None = None


@dataclass(slots=True)
class Identifier:
    name: str
    block_id: str | None = None


@dataclass(slots=True)
class ReadExpression:
    prompt: str | None = None
    block_id: str | None = None


@dataclass(slots=True)
class BinaryOperation:
    operator: BinaryOperator
    left: Expression
    right: Expression
    block_id: str | None = None


Expression = ReadExpression | BinaryOperation | Literal | Identifier


@dataclass(slots=True)
class VariableDeclaration:
    name: str
    initial_value: Expression | None = None
    block_id: str | None = None


@dataclass(slots=True)
class Assignment:
    name: str
    value: Expression
    block_id: str | None = None


@dataclass(slots=True)
class WriteStatement:
    value: Expression
    block_id: str | None = None


@dataclass(slots=True)
class IfStatement:
    condition: Expression
    consequent: list[Statement] = field(default_factory=list)
    # None means "no senao branch"; an empty list renders nothing either.
    alternate: list[Statement] | None = None
    block_id: str | None = None


@dataclass(slots=True)
class WhileLoop:
    condition: Expression
    body: list[Statement] = field(default_factory=list)
    block_id: str | None = None


Statement = VariableDeclaration | Assignment | WriteStatement | IfStatement | WhileLoop


@dataclass(slots=True)
class Program:
    body: list[Statement] = field(default_factory=list)
