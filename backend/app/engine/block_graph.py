"""In-memory block graph: block arena, data connections and the sequential chain.

Blocks are addressed by identity. Data connections live on the consuming
block (one per input socket); next/previous links are kept in a single
adjacency index owned by the graph, so ``next_of(a) is b`` holds exactly when
``previous_of(b) is a``. Every mutating operation validates first and leaves
the graph untouched when it reports a failure.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable
from uuid import uuid4

from backend.app.engine.topology import OrderingResult, topological_order
from backend.app.models.block import BlockDefinition, DataType, SocketSpec
from backend.app.models.program import BlockPosition, BlockState, BlockValue, Connection
from backend.app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class ErrorCode(StrEnum):
    UNKNOWN_BLOCK = "unknown_block"
    UNKNOWN_SOCKET = "unknown_socket"
    TYPE_MISMATCH = "type_mismatch"
    NO_OUTPUT = "no_output"
    WOULD_CREATE_CYCLE = "would_create_cycle"
    UNSUPPORTED_SEQUENCING = "unsupported_sequencing"


@dataclass(slots=True, frozen=True)
class ValidationResult:
    valid: bool
    code: ErrorCode | None = None
    error: str = ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, code: ErrorCode, error: str) -> "ValidationResult":
        return cls(valid=False, code=code, error=error)

    def __bool__(self) -> bool:
        return self.valid


class GraphStateError(ValueError):
    """Raised when a serialized graph state cannot be restored at all."""


def is_value_compatible(value: object, data_type: DataType) -> bool:
    if data_type == DataType.ANY:
        return True
    if data_type == DataType.NUMBER:
        if isinstance(value, bool):
            return False
        # Arbitrarily large ints are exact; only floats can be inf or nan.
        return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))
    if data_type == DataType.TEXT:
        return isinstance(value, str)
    if data_type == DataType.BOOLEAN:
        return isinstance(value, bool)
    if data_type == DataType.VOID:
        return value is None
    return False


def is_type_accepted(source_type: DataType, socket: SocketSpec) -> bool:
    accepted = socket.accepted_types
    if DataType.ANY in accepted:
        return True
    # Dynamically typed outputs (variable reads) are resolved by the interpreter.
    if source_type == DataType.ANY:
        return True
    return source_type in accepted


class Block:
    __slots__ = ("_uuid", "_definition", "_position", "_values", "_connections")

    def __init__(
        self,
        definition: BlockDefinition,
        position: BlockPosition | None = None,
        *,
        uuid: str | None = None,
    ) -> None:
        self._uuid = uuid or str(uuid4())
        self._definition = definition
        self._position = position.model_copy() if position is not None else BlockPosition()
        self._values: dict[str, BlockValue] = {}
        self._connections: dict[str, Connection] = {}

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def definition(self) -> BlockDefinition:
        return self._definition

    @property
    def position(self) -> BlockPosition:
        return self._position.model_copy()

    @property
    def values(self) -> dict[str, BlockValue]:
        return dict(self._values)

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def get_value(self, socket_id: str) -> BlockValue:
        return self._values.get(socket_id)

    def has_value(self, socket_id: str) -> bool:
        return socket_id in self._values

    def get_connection(self, socket_id: str) -> Connection | None:
        return self._connections.get(socket_id)

    def set_position(self, x: float, y: float) -> None:
        self._position = BlockPosition(x=x, y=y)

    def set_value(self, socket_id: str, value: BlockValue) -> ValidationResult:
        socket = self._definition.find_input(socket_id)
        if socket is None:
            return ValidationResult.fail(
                ErrorCode.UNKNOWN_SOCKET,
                f"Socket '{socket_id}' not found on block '{self._definition.id}'.",
            )
        if not is_value_compatible(value, socket.data_type):
            return ValidationResult.fail(
                ErrorCode.TYPE_MISMATCH,
                f"Type mismatch on socket '{socket_id}': expected {socket.data_type}, got {type(value).__name__}.",
            )
        self._values[socket_id] = value
        return ValidationResult.ok()

    def clear_value(self, socket_id: str) -> None:
        self._values.pop(socket_id, None)

    def _attach(self, connection: Connection) -> None:
        self._connections[connection.socket_id] = connection

    def _detach(self, socket_id: str) -> None:
        self._connections.pop(socket_id, None)

    def __repr__(self) -> str:
        return f"Block({self._definition.label}, id={self._uuid[:8]})"


class BlockGraph:
    def __init__(self, catalog: CatalogService) -> None:
        self._catalog = catalog
        self._blocks: dict[str, Block] = {}
        self._next_of: dict[str, str] = {}
        self._previous_of: dict[str, str] = {}

    # ---- arena -----------------------------------------------------------

    @property
    def blocks(self) -> list[Block]:
        return list(self._blocks.values())

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def get_block(self, block_id: str) -> Block | None:
        return self._blocks.get(block_id)

    def create_block(self, definition_id: str, position: BlockPosition | None = None) -> Block | None:
        definition = self._catalog.get_definition(definition_id)
        if definition is None:
            logger.error("Block definition not found: '%s'", definition_id)
            return None
        return self.add_block(definition, position)

    def add_block(
        self,
        definition: BlockDefinition,
        position: BlockPosition | None = None,
        *,
        uuid: str | None = None,
    ) -> Block:
        block = Block(definition, position, uuid=uuid)
        if block.uuid in self._blocks:
            raise GraphStateError(f"Block identity '{block.uuid}' is already in use.")
        self._blocks[block.uuid] = block
        return block

    def delete_block(self, block_id: str) -> bool:
        if block_id not in self._blocks:
            return False

        previous_id = self._previous_of.get(block_id)
        next_id = self._next_of.get(block_id)
        self._unlink_next(block_id)
        if previous_id is not None:
            self._unlink_next(previous_id)
            if next_id is not None:
                self._link(previous_id, next_id)

        for other in self._blocks.values():
            for connection in other.connections:
                if connection.source_block_id == block_id:
                    other._detach(connection.socket_id)

        del self._blocks[block_id]
        return True

    def clear(self) -> None:
        self._blocks.clear()
        self._next_of.clear()
        self._previous_of.clear()

    # ---- values ----------------------------------------------------------

    def set_value(self, block_id: str, socket_id: str, value: BlockValue) -> ValidationResult:
        block = self._blocks.get(block_id)
        if block is None:
            return self._unknown_block(block_id)
        return block.set_value(socket_id, value)

    def clear_value(self, block_id: str, socket_id: str) -> None:
        block = self._blocks.get(block_id)
        if block is not None:
            block.clear_value(socket_id)

    def set_position(self, block_id: str, x: float, y: float) -> bool:
        block = self._blocks.get(block_id)
        if block is None:
            return False
        block.set_position(x, y)
        return True

    # ---- data connections ------------------------------------------------

    def can_connect(self, target_id: str, socket_id: str, source_id: str) -> ValidationResult:
        target = self._blocks.get(target_id)
        if target is None:
            return self._unknown_block(target_id)
        source = self._blocks.get(source_id)
        if source is None:
            return self._unknown_block(source_id)

        socket = target.definition.find_input(socket_id)
        if socket is None:
            return ValidationResult.fail(
                ErrorCode.UNKNOWN_SOCKET,
                f"Socket '{socket_id}' not found on block '{target.definition.id}'.",
            )

        output = source.definition.output
        if output is None:
            return ValidationResult.fail(
                ErrorCode.NO_OUTPUT,
                f"Block '{source.definition.id}' has no output to connect.",
            )

        if not is_type_accepted(output.data_type, socket):
            accepted = ", ".join(str(item) for item in socket.accepted_types)
            return ValidationResult.fail(
                ErrorCode.TYPE_MISMATCH,
                f"Type mismatch: {output.data_type} is not accepted by socket '{socket_id}' ({accepted}).",
            )

        if self._would_create_cycle(source_id, target_id):
            return ValidationResult.fail(
                ErrorCode.WOULD_CREATE_CYCLE,
                f"Connecting '{source_id}' into '{target_id}.{socket_id}' would create a cycle.",
            )

        return ValidationResult.ok()

    def connect(self, target_id: str, socket_id: str, source_id: str) -> ValidationResult:
        result = self.can_connect(target_id, socket_id, source_id)
        if not result:
            return result
        self._blocks[target_id]._attach(
            Connection(source_block_id=source_id, target_block_id=target_id, socket_id=socket_id)
        )
        return result

    def disconnect(self, target_id: str, socket_id: str) -> None:
        block = self._blocks.get(target_id)
        if block is not None:
            block._detach(socket_id)

    def get_connection(self, target_id: str, socket_id: str) -> Connection | None:
        block = self._blocks.get(target_id)
        if block is None:
            return None
        return block.get_connection(socket_id)

    def connections(self) -> list[Connection]:
        return [connection for block in self._blocks.values() for connection in block.connections]

    def data_edges(self) -> list[tuple[str, str]]:
        return [(connection.source_block_id, connection.target_block_id) for connection in self.connections()]

    def evaluation_order(self) -> OrderingResult:
        return topological_order(list(self._blocks), self.data_edges())

    def _would_create_cycle(self, source_id: str, target_id: str) -> bool:
        # Walk everything the source already depends on, through data
        # connections and sequence links, looking for the target.
        pending = [source_id]
        visited: set[str] = set()
        while pending:
            current_id = pending.pop()
            if current_id == target_id:
                return True
            if current_id in visited:
                continue
            visited.add(current_id)

            current = self._blocks.get(current_id)
            if current is None:
                continue
            pending.extend(connection.source_block_id for connection in current.connections)
            next_id = self._next_of.get(current_id)
            if next_id is not None:
                pending.append(next_id)
        return False

    # ---- sequential chain ------------------------------------------------

    def next_of(self, block_id: str) -> Block | None:
        next_id = self._next_of.get(block_id)
        return self._blocks.get(next_id) if next_id is not None else None

    def previous_of(self, block_id: str) -> Block | None:
        previous_id = self._previous_of.get(block_id)
        return self._blocks.get(previous_id) if previous_id is not None else None

    def set_next(self, block_id: str, next_id: str | None) -> ValidationResult:
        block = self._blocks.get(block_id)
        if block is None:
            return self._unknown_block(block_id)

        if next_id is None:
            self._unlink_next(block_id)
            return ValidationResult.ok()

        next_block = self._blocks.get(next_id)
        if next_block is None:
            return self._unknown_block(next_id)

        if not block.definition.has_next:
            return ValidationResult.fail(
                ErrorCode.UNSUPPORTED_SEQUENCING,
                f"Block '{block.definition.id}' does not support a next link.",
            )
        if not next_block.definition.has_previous:
            return ValidationResult.fail(
                ErrorCode.UNSUPPORTED_SEQUENCING,
                f"Block '{next_block.definition.id}' does not support a previous link.",
            )

        if self._chain_reaches(next_id, block_id):
            return ValidationResult.fail(
                ErrorCode.WOULD_CREATE_CYCLE,
                f"Linking '{block_id}' -> '{next_id}' would create a cycle in the sequence.",
            )

        self._unlink_next(block_id)
        previous_id = self._previous_of.get(next_id)
        if previous_id is not None:
            self._unlink_next(previous_id)
        self._link(block_id, next_id)
        return ValidationResult.ok()

    def root_blocks(self) -> list[Block]:
        return [
            block
            for block in self._blocks.values()
            if block.uuid not in self._previous_of and block.definition.is_chain_capable
        ]

    def chain(self, start_id: str) -> list[Block]:
        chain: list[Block] = []
        seen: set[str] = set()
        current_id: str | None = start_id
        while current_id is not None and current_id not in seen:
            block = self._blocks.get(current_id)
            if block is None:
                break
            seen.add(current_id)
            chain.append(block)
            current_id = self._next_of.get(current_id)
        return chain

    def _chain_reaches(self, start_id: str, wanted_id: str) -> bool:
        seen: set[str] = set()
        current_id: str | None = start_id
        while current_id is not None and current_id not in seen:
            if current_id == wanted_id:
                return True
            seen.add(current_id)
            current_id = self._next_of.get(current_id)
        return False

    def _link(self, block_id: str, next_id: str) -> None:
        self._next_of[block_id] = next_id
        self._previous_of[next_id] = block_id

    def _unlink_next(self, block_id: str) -> None:
        next_id = self._next_of.pop(block_id, None)
        if next_id is not None:
            self._previous_of.pop(next_id, None)

    # ---- serialization ---------------------------------------------------

    def serialize(self) -> list[BlockState]:
        return [
            BlockState(
                uuid=block.uuid,
                definition_id=block.definition.id,
                position=block.position,
                values=block.values,
                connections=[connection.model_copy() for connection in block.connections],
                next_block_id=self._next_of.get(block.uuid),
                previous_block_id=self._previous_of.get(block.uuid),
            )
            for block in self._blocks.values()
        ]

    def restore(self, states: Iterable[BlockState]) -> list[str]:
        """Replace the graph contents with ``states``.

        Blocks are instantiated first, with their original identities, and
        only then linked, since a record may reference blocks that appear
        later in the sequence. Records that cannot be honoured are skipped
        and reported in the returned diagnostics.
        """
        states = list(states)
        identities = [state.uuid for state in states]
        duplicates = sorted({uuid for uuid in identities if identities.count(uuid) > 1})
        if duplicates:
            raise GraphStateError(f"Duplicate block identities in graph state: {', '.join(duplicates)}")

        self.clear()
        diagnostics: list[str] = []

        for state in states:
            definition = self._catalog.get_definition(state.definition_id)
            if definition is None:
                diagnostics.append(f"Block '{state.uuid}' references unknown definition '{state.definition_id}'.")
                continue
            block = self.add_block(definition, state.position, uuid=state.uuid)
            for socket_id, value in state.values.items():
                result = block.set_value(socket_id, value)
                if not result:
                    diagnostics.append(f"Block '{state.uuid}': {result.error}")

        for state in states:
            if state.uuid not in self._blocks:
                continue
            for connection in state.connections:
                if connection.target_block_id != state.uuid:
                    diagnostics.append(
                        f"Block '{state.uuid}' lists a connection targeting '{connection.target_block_id}'."
                    )
                    continue
                result = self.connect(state.uuid, connection.socket_id, connection.source_block_id)
                if not result:
                    diagnostics.append(f"Block '{state.uuid}': {result.error}")

        claimed_previous = {state.uuid: state.previous_block_id for state in states}
        for state in states:
            if state.uuid not in self._blocks or state.next_block_id is None:
                continue

            next_id = state.next_block_id
            linked_previous = self._previous_of.get(next_id)
            if linked_previous is not None and linked_previous != state.uuid:
                diagnostics.append(
                    f"Block '{state.uuid}': next block '{next_id}' is already linked after '{linked_previous}'."
                )
                continue
            recorded_previous = claimed_previous.get(next_id)
            if recorded_previous is not None and recorded_previous != state.uuid:
                diagnostics.append(
                    f"Block '{state.uuid}': next block '{next_id}' records '{recorded_previous}' as its previous block."
                )
                continue

            result = self.set_next(state.uuid, next_id)
            if not result:
                diagnostics.append(f"Block '{state.uuid}': {result.error}")

        for message in diagnostics:
            logger.warning("Graph restore: %s", message)
        return diagnostics

    @staticmethod
    def _unknown_block(block_id: str) -> ValidationResult:
        return ValidationResult.fail(ErrorCode.UNKNOWN_BLOCK, f"Block '{block_id}' not found.")
