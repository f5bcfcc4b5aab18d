"""Persistent per-item mastery tracking."""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from conjubot.catalog import split_key
from conjubot.config import MASTERY_THRESHOLD
from conjubot.models.models import StorageSlot
from conjubot.models.quiz_models import MasteryRecord, ReviewEntry, ReviewStatus
from conjubot.monitoring import storage_errors

logger = logging.getLogger(__name__)

LedgerData = Dict[str, MasteryRecord]


def record_success(record: MasteryRecord, threshold: int = MASTERY_THRESHOLD) -> Tuple[MasteryRecord, bool]:
    """Count a correct answer.

    Returns:
        The updated record and whether this answer newly mastered the item.
    """
    correct_count = record.correct_count + 1
    mastered = correct_count >= threshold
    updated = MasteryRecord(
        correct_count=correct_count,
        total_attempts=record.total_attempts + 1,
        mastered=mastered,
    )
    return updated, mastered and not record.mastered


def record_failure(record: MasteryRecord) -> MasteryRecord:
    """Count a failed round. A failure always clears the mastered flag."""
    return replace(record, total_attempts=record.total_attempts + 1, mastered=False)


def encode_ledger(data: LedgerData) -> str:
    """Serialize ledger data the same way on every save."""
    return json.dumps(
        {key: record.to_dict() for key, record in data.items()},
        ensure_ascii=False,
        separators=(",", ":"),
    )


def decode_ledger(raw: Optional[str]) -> LedgerData:
    """Parse stored ledger data.

    A missing, malformed or partially invalid value yields an empty ledger.
    """
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError(f"Ledger must be an object, got {type(payload).__name__}")
        return {str(key): MasteryRecord.from_dict(value) for key, value in payload.items()}
    except ValueError as e:  # json.JSONDecodeError is a ValueError
        logger.warning(f"Discarding unreadable mastery ledger: {e}")
        return {}


class LedgerStorage(ABC):
    """Named slot the ledger is read from and written to."""

    @abstractmethod
    def load(self) -> LedgerData:
        """Read the whole ledger. Never raises for missing or corrupt data."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def save(self, data: LedgerData) -> None:
        """Overwrite the whole ledger."""
        raise NotImplementedError("Subclasses must implement this method")


class MemoryStorage(LedgerStorage):
    """Slot kept in process memory."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw

    def load(self) -> LedgerData:
        return decode_ledger(self.raw)

    def save(self, data: LedgerData) -> None:
        self.raw = encode_ledger(data)


class SlotStorage(LedgerStorage):
    """Slot stored as a row of the storage_slots table."""

    def __init__(self, session_factory: Callable[[], Session], slot_name: str):
        self.session_factory = session_factory
        self.slot_name = slot_name

    def read_raw(self) -> Optional[str]:
        db = self.session_factory()
        try:
            slot = db.get(StorageSlot, self.slot_name)
            return slot.value if slot else None
        finally:
            db.close()

    def load(self) -> LedgerData:
        try:
            raw = self.read_raw()
        except SQLAlchemyError as e:
            storage_errors.labels(operation="load").inc()
            logger.error(f"Error reading slot {self.slot_name}: {e}")
            return {}
        return decode_ledger(raw)

    def save(self, data: LedgerData) -> None:
        value = encode_ledger(data)
        db = self.session_factory()
        try:
            slot = db.get(StorageSlot, self.slot_name)
            if slot is None:
                db.add(StorageSlot(name=self.slot_name, value=value))
            else:
                slot.value = value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            storage_errors.labels(operation="save").inc()
            logger.error(f"Error writing slot {self.slot_name}: {e}")
        finally:
            db.close()


class MasteryLedger:
    """Mapping of verb/tense/pronoun keys to mastery records.

    Storage is read once when the ledger is created and the full mapping is
    written back after every `put`.
    """

    def __init__(self, storage: LedgerStorage):
        self.storage = storage
        self._records: LedgerData = storage.load()
        logger.debug(f"Loaded mastery ledger with {len(self._records)} records")

    def get(self, key: str) -> MasteryRecord:
        """Record for `key`, or a fresh one if the key was never attempted."""
        return self._records.get(key, MasteryRecord())

    def put(self, key: str, record: MasteryRecord) -> None:
        self._records[key] = record
        self.storage.save(self._records)

    def save(self) -> None:
        """Write the ledger back without changes."""
        self.storage.save(self._records)

    def snapshot(self) -> LedgerData:
        return dict(self._records)

    def items(self) -> Iterator[Tuple[str, MasteryRecord]]:
        return iter(list(self._records.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)


def review_status(record: MasteryRecord, in_progress_at: int) -> ReviewStatus:
    if record.mastered:
        return ReviewStatus.MASTERED
    if record.correct_count >= in_progress_at:
        return ReviewStatus.IN_PROGRESS
    return ReviewStatus.NEEDS_WORK


def review_entries(
    ledger: MasteryLedger,
    threshold: int = MASTERY_THRESHOLD,
    in_progress_at: int = 3,
) -> List[ReviewEntry]:
    """Build the review report, one entry per attempted item, in ledger order."""
    entries = []
    for key, record in ledger.items():
        try:
            verb, tense, pronoun = split_key(key)
        except ValueError:
            logger.warning(f"Skipping malformed ledger key: {key!r}")
            continue
        entries.append(ReviewEntry(
            verb=verb,
            tense=tense,
            pronoun=pronoun,
            record=record,
            status=review_status(record, in_progress_at),
            threshold=threshold,
        ))
    return entries
