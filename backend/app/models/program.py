from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

BlockValue = str | int | float | bool | None

MAX_PROGRAM_BLOCKS = 500


class BlockPosition(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Connection(BaseModel):
    source_block_id: str = Field(min_length=1)
    target_block_id: str = Field(min_length=1)
    socket_id: str = Field(min_length=1)


class BlockState(BaseModel):
    uuid: str = Field(min_length=1)
    definition_id: str = Field(min_length=1)
    position: BlockPosition = Field(default_factory=BlockPosition)
    values: dict[str, BlockValue] = Field(default_factory=dict)
    connections: list[Connection] = Field(default_factory=list)
    next_block_id: str | None = None
    previous_block_id: str | None = None


class ProgramGraph(BaseModel):
    blocks: list[BlockState] = Field(default_factory=list)

    @field_validator("blocks")
    @classmethod
    def validate_block_count(cls, blocks: list[BlockState]) -> list[BlockState]:
        if len(blocks) > MAX_PROGRAM_BLOCKS:
            raise ValueError(f"Program exceeds maximum block count ({MAX_PROGRAM_BLOCKS})")
        return blocks

    @model_validator(mode="after")
    def validate_unique_block_ids(self) -> "ProgramGraph":
        ids = [block.uuid for block in self.blocks]
        if len(ids) != len(set(ids)):
            raise ValueError("Block identities must be unique")
        return self


class ProgramBase(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str = Field(default="", max_length=2_048)
    schema_version: int = 1
    graph: ProgramGraph = Field(default_factory=ProgramGraph)


class ProgramCreateRequest(ProgramBase):
    pass


class ProgramUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = Field(default=None, max_length=2_048)
    graph: ProgramGraph | None = None
    schema_version: int | None = None


class ProgramResponse(ProgramBase):
    id: str
    created_at: datetime
    updated_at: datetime


class ProgramListItem(BaseModel):
    id: str
    name: str
    description: str
    schema_version: int
    block_count: int
    updated_at: datetime


class ProgramDocument(ProgramBase):
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CompileResponse(BaseModel):
    program_id: str | None = None
    code: str
    diagnostics: list[str] = Field(default_factory=list)
    evaluation_order: list[str] = Field(default_factory=list)


@dataclass
class CompileArtifact:
    code: str
    diagnostics: list[str] = field(default_factory=list)
    evaluation_order: list[str] = field(default_factory=list)
