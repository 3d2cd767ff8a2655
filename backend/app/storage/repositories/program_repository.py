from __future__ import annotations

import json
from datetime import timezone
from typing import Sequence

from sqlalchemy import desc, select

from backend.app.models.program import ProgramDocument, ProgramGraph
from backend.app.storage.db import ProgramRecord


class ProgramRepository:
    def __init__(self, db_session_factory):
        self._db_session_factory = db_session_factory

    def create(self, document: ProgramDocument) -> ProgramDocument:
        with self._db_session_factory() as db:
            record = ProgramRecord(
                id=document.id,
                name=document.name,
                description=document.description,
                schema_version=document.schema_version,
                graph_json=document.graph.model_dump_json(),
                created_at=document.created_at,
                updated_at=document.updated_at,
            )
            db.add(record)
        return document

    def get(self, program_id: str) -> ProgramDocument | None:
        with self._db_session_factory() as db:
            record = db.get(ProgramRecord, program_id)
            if not record:
                return None
            return self._to_document(record)

    def list(self) -> Sequence[ProgramDocument]:
        with self._db_session_factory() as db:
            stmt = select(ProgramRecord).order_by(desc(ProgramRecord.updated_at))
            return [self._to_document(record) for record in db.scalars(stmt).all()]

    def update(self, program_id: str, document: ProgramDocument) -> ProgramDocument | None:
        with self._db_session_factory() as db:
            record = db.get(ProgramRecord, program_id)
            if not record:
                return None

            record.name = document.name
            record.description = document.description
            record.schema_version = document.schema_version
            record.graph_json = document.graph.model_dump_json()
            record.updated_at = document.updated_at
            db.add(record)

            return self._to_document(record)

    def delete(self, program_id: str) -> bool:
        with self._db_session_factory() as db:
            record = db.get(ProgramRecord, program_id)
            if not record:
                return False
            db.delete(record)
        return True

    @staticmethod
    def _to_document(record: ProgramRecord) -> ProgramDocument:
        created_at = record.created_at
        updated_at = record.updated_at

        # SQLite drops tzinfo on the way back.
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)

        return ProgramDocument(
            id=record.id,
            name=record.name,
            description=record.description,
            schema_version=record.schema_version,
            graph=ProgramGraph.model_validate(json.loads(record.graph_json)),
            created_at=created_at,
            updated_at=updated_at,
        )
