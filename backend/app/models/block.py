from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DataType(StrEnum):
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    ANY = "any"
    VOID = "void"


class BlockKind(StrEnum):
    STATEMENT = "statement"
    EXPRESSION = "expression"
    CONTROL = "control"
    TERMINAL = "terminal"


class BlockCategory(StrEnum):
    IO = "io"
    VARIABLES = "variables"
    CONTROL = "control"
    OPERATORS = "operators"
    FUNCTIONS = "functions"


class SocketSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    label: str = ""
    data_type: DataType
    required: bool = True
    accepts: tuple[DataType, ...] | None = None

    @property
    def accepted_types(self) -> tuple[DataType, ...]:
        return self.accepts or (self.data_type,)


class BlockDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    category: BlockCategory
    kind: BlockKind
    label: str = Field(min_length=1)
    inputs: tuple[SocketSpec, ...] = ()
    output: SocketSpec | None = None
    has_next: bool = False
    has_previous: bool = False
    pedagogy_level: int = Field(default=1, ge=1, le=5)
    help_text: str = ""
    examples: tuple[str, ...] = ()
    code_template: str = ""

    @property
    def is_chain_capable(self) -> bool:
        return self.has_next or self.has_previous

    def find_input(self, socket_id: str) -> SocketSpec | None:
        for socket in self.inputs:
            if socket.id == socket_id:
                return socket
        return None
