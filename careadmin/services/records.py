"""
In-memory record repositories.

Each repository is seeded at startup and then changed only through the write
routes. Name-like search criteria are case-insensitive substring matches and
status-like criteria are case-insensitive exact matches; all supplied
criteria must match and blank criteria are ignored.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
)

from pydantic import ValidationError

from careadmin.models.records import (
    AncillaryUser,
    AssociatedEntity,
    ContactUser,
    Entity,
    EpisodeDiagnosis,
    Patient,
)
from careadmin.schemas.records import BulkCreateResponse, BulkOperationError

RecordT = TypeVar("RecordT", bound=Entity)

logger = logging.getLogger(__name__)


class RecordExistsError(Exception):
    """Raised when a record or sub-resource id is already taken."""


def _matches(value: Optional[str], needle: Optional[str]) -> bool:
    if not needle or not needle.strip():
        return True
    return value is not None and needle.strip().lower() in value.lower()


def _equals(value: Optional[str], needle: Optional[str]) -> bool:
    if not needle or not needle.strip():
        return True
    return value is not None and value.strip().lower() == needle.strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def merge_changes(document: Dict[str, Any], changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay ``changes`` on ``document``; nested objects merge key by key."""
    merged = dict(document)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = merge_changes(current, value)
        else:
            merged[key] = value
    return merged


class InMemoryRepository(Generic[RecordT]):
    """Collection of records keyed by id."""

    model: Type[RecordT]

    def __init__(
        self,
        records: Iterable[RecordT] = (),
        *,
        wav_id: Callable[[RecordT], Optional[str]],
    ) -> None:
        self._wav_id = wav_id
        self._data: Dict[str, RecordT] = {}
        for record in records:
            self._data.setdefault(str(record.id), record)
        logger.info("Seeded %s with %s records", type(self).__name__, len(self._data))

    def get_all(self) -> List[RecordT]:
        return list(self._data.values())

    def get_by_id(self, record_id: str) -> Optional[RecordT]:
        return self._data.get(record_id)

    def get_by_wav_id(self, wav_id: str) -> Optional[RecordT]:
        return next((r for r in self._data.values() if self._wav_id(r) == wav_id), None)

    def find(self, predicate: Callable[[RecordT], bool]) -> List[RecordT]:
        return [record for record in self._data.values() if predicate(record)]

    def count(self) -> int:
        return len(self._data)

    def add(self, record: RecordT) -> RecordT:
        """Store a new record, generating an id when none was given."""
        if not record.id:
            record.id = str(uuid.uuid4())
        if record.id in self._data:
            raise RecordExistsError(f"Record with ID {record.id} already exists")
        record.created_at = _utcnow()
        self._data[record.id] = record
        logger.info("Added entity with ID: %s", record.id)
        return record

    def update(self, record: RecordT) -> RecordT:
        record.updated_at = _utcnow()
        self._data[record.id] = record
        logger.info("Updated entity with ID: %s", record.id)
        return record

    def replace(self, record_id: str, record: RecordT) -> Optional[RecordT]:
        """Full update keeping the stored id and creation time."""
        existing = self._data.get(record_id)
        if existing is None:
            return None
        record.id = record_id
        record.created_at = existing.created_at
        return self.update(record)

    def patch(self, record_id: str, changes: Mapping[str, Any]) -> Optional[RecordT]:
        """
        Apply a partial update given in the records' JSON field names.

        The result is validated as a whole, so a change that breaks the record
        raises ``ValidationError`` and leaves the stored record untouched.
        """
        existing = self._data.get(record_id)
        if existing is None:
            return None
        changes = {k: v for k, v in changes.items() if k not in ("id", "createdAt")}
        document = merge_changes(existing.model_dump(by_alias=True), changes)
        return self.update(self.model.model_validate(document))

    def delete(self, record_id: str) -> bool:
        removed = self._data.pop(record_id, None) is not None
        if removed:
            logger.info("Deleted entity with ID: %s", record_id)
        return removed

    def bulk_add(self, items: Iterable[Mapping[str, Any]]) -> BulkCreateResponse:
        """Validate and add each item on its own; failures are reported by index."""
        created = 0
        errors: List[BulkOperationError] = []
        for index, item in enumerate(items):
            try:
                self.add(self.model.model_validate(item))
            except (ValidationError, RecordExistsError) as exc:
                raw_id = item.get("id") if isinstance(item, Mapping) else None
                item_id = None if raw_id is None else str(raw_id)
                errors.append(BulkOperationError(index=index, item_id=item_id, error=str(exc)))
            else:
                created += 1
        noun = self.model.__name__
        return BulkCreateResponse(
            success=not errors,
            message=f"Created {created} {noun} records with {len(errors)} errors",
            created_count=created,
            error_count=len(errors),
            errors=errors,
        )


class PatientRepository(InMemoryRepository[Patient]):
    model = Patient

    def __init__(self, records: Iterable[Patient] = ()) -> None:
        super().__init__(records, wav_id=lambda p: p.agency_info.patient_wav_id)

    def search(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Patient]:
        return self.find(
            lambda p: _matches(p.agency_info.first_name, first_name)
            and _matches(p.agency_info.last_name, last_name)
            and _equals(p.agency_info.status, status)
        )

    def add_diagnosis(self, patient_id: str, diagnosis: EpisodeDiagnosis) -> Optional[Patient]:
        patient = self.get_by_id(patient_id)
        if patient is None:
            return None
        diagnoses = list(patient.agency_info.episode_diagnoses or [])
        if not diagnosis.id:
            diagnosis.id = str(uuid.uuid4())
        if any(existing.id == diagnosis.id for existing in diagnoses):
            raise RecordExistsError(f"Diagnosis with ID {diagnosis.id} already exists")
        patient.agency_info.episode_diagnoses = diagnoses + [diagnosis]
        return self.update(patient)


class _EntityLinkedRepository(InMemoryRepository[RecordT]):
    """Records that carry a list of associated entities."""

    def add_entity(self, record_id: str, entity: AssociatedEntity) -> Optional[RecordT]:
        record = self.get_by_id(record_id)
        if record is None:
            return None
        entities = list(record.associated_entities)
        if any(existing.id == entity.id for existing in entities):
            raise RecordExistsError(f"Entity with ID {entity.id} is already associated")
        record.associated_entities = entities + [entity]
        return self.update(record)


class ContactUserRepository(_EntityLinkedRepository[ContactUser]):
    model = ContactUser

    def __init__(self, records: Iterable[ContactUser] = ()) -> None:
        super().__init__(records, wav_id=lambda c: c.contact_wav_id)

    def search(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        job_title: Optional[str] = None,
    ) -> List[ContactUser]:
        return self.find(
            lambda c: _matches(c.first_name, first_name)
            and _matches(c.last_name, last_name)
            and _matches(c.job_title, job_title)
        )


class AncillaryUserRepository(_EntityLinkedRepository[AncillaryUser]):
    model = AncillaryUser

    def __init__(self, records: Iterable[AncillaryUser] = ()) -> None:
        super().__init__(records, wav_id=lambda a: a.entity_wav_id)

    def search(
        self,
        name: Optional[str] = None,
        entity_type: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[AncillaryUser]:
        """``entity_type`` is an exact match; ``name`` and ``state`` are substrings."""
        return self.find(
            lambda a: _matches(a.name, name)
            and (not entity_type or a.entity_type == entity_type)
            and _matches(a.state, state)
        )


__all__ = [
    "AncillaryUserRepository",
    "ContactUserRepository",
    "InMemoryRepository",
    "PatientRepository",
    "RecordExistsError",
    "merge_changes",
]
