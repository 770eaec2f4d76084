"""
Transfer save service: validation, normalization and deduplication.

Deduplication keys:
1. Primary: (bank, operation_number), only when an operation number exists
2. Fallback: (date, amount, destination_account_suffix), only when the
   primary key found nothing

A collision either comes back as DuplicateFound (storage untouched) or,
with replace_if_duplicate, overwrites the existing record in place while
keeping its id, created_at and exported_at. An edited record that collides
with another one is merged into it: the edited row is deleted in the same
transaction.
"""

import logging
import threading
import uuid
from contextlib import ExitStack, contextmanager
from datetime import date, datetime
from typing import Callable, Iterator, Optional

from ..schemas.transfer import (
    DuplicateFound,
    DuplicateType,
    SaveOutcome,
    Success,
    TransferForm,
    TransferRecord,
    ValidationFailure,
)
from ..schemas.validation import (
    FormValidationError,
    normalize_bank,
    normalize_beneficiary,
    validate_form,
)
from ..state_store.sqlite_store import TransferStore

logger = logging.getLogger(__name__)


class TransferNotFoundError(Exception):
    """The transfer id does not exist (stale edit or delete)."""

    def __init__(self, transfer_id: str):
        self.transfer_id = transfer_id
        super().__init__(f"Transfer not found: {transfer_id}")


class KeyedLocks:
    """
    One lock per logical record identity.

    Acquiring several keys always happens in sorted order so two
    submissions sharing any key are serialized without deadlocking.
    A key's lock is dropped once nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: dict[str, list] = {}

    @contextmanager
    def _held(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock = entry[0]
        try:
            with lock:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._held(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TransferService:
    """
    Create, update and deduplicate transfers.

    Steps 3-5 of a save (primary dedupe, fallback dedupe, create/update)
    run while holding the locks of every key the submission touches, so
    two concurrent submissions of the same transfer cannot both see "no
    duplicate" and both insert.
    """

    def __init__(
        self,
        store: TransferStore,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            store: Persistence collaborator
            clock: Returns "now"; used for timestamps and the future-date check
            id_factory: Generates ids for new transfers (random UUID4 by default)
        """
        self.store = store
        self.clock = clock or _local_now
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._locks = KeyedLocks()

    def _today(self) -> date:
        return self.clock().date()

    def _timestamp(self) -> str:
        return self.clock().isoformat(timespec="seconds")

    def create_or_update(
        self, form: TransferForm, replace_if_duplicate: bool = False
    ) -> SaveOutcome:
        """
        Validate, normalize, deduplicate and store a form submission.

        Args:
            form: The submission; form.id set means "edit this record"
            replace_if_duplicate: Overwrite a colliding record instead of
                returning DuplicateFound

        Returns:
            Success, ValidationFailure or DuplicateFound

        Raises:
            TransferNotFoundError: form.id names a record that does not exist
        """
        try:
            validate_form(form, today=self._today())
        except FormValidationError as e:
            logger.debug(f"Validation failed: {e}")
            return ValidationFailure(field=e.field, message=e.message)

        bank = normalize_bank(form.bank)
        beneficiary = normalize_beneficiary(form.beneficiary)
        operation = form.operation_number.strip() if form.operation_number else None
        suffix = form.destination_account_suffix.strip()
        amount = form.amount.strip()
        day = form.date.strip()
        hour = form.time.strip()

        keys = [f"fallback:{day}|{amount}|{suffix}"]
        if operation is not None:
            keys.append(f"primary:{bank}|{operation}")
        if form.id:
            keys.append(f"id:{form.id}")

        draft = TransferRecord(
            id=form.id or "",
            date=day,
            time=hour,
            bank=bank,
            operation_number=operation,
            beneficiary=beneficiary,
            destination_account_suffix=suffix,
            amount=amount,
            extras=form.extras or None,
            created_at="",
            updated_at="",
        )

        while True:
            with self._locks.hold(*keys):
                previous: Optional[TransferRecord] = None
                if form.id:
                    previous = self.store.get_by_id(form.id)
                    if previous is None:
                        raise TransferNotFoundError(form.id)

                # Primary dedupe
                duplicate_type = DuplicateType.PRIMARY
                existing = self.store.find_by_bank_and_operation(bank, operation)
                if existing is not None and existing.id == form.id:
                    existing = None

                # Fallback dedupe, reached only without a primary collision
                if existing is None:
                    duplicate_type = DuplicateType.FALLBACK
                    existing = self.store.find_possible_duplicate(
                        day, amount, suffix, exclude_id=form.id
                    )

                if existing is not None:
                    if not replace_if_duplicate:
                        logger.info(f"Duplicate ({duplicate_type.value}) of transfer {existing.id}")
                        return DuplicateFound(existing=existing, type=duplicate_type)
                    if f"id:{existing.id}" not in keys:
                        # Retry also holding the target id
                        keys.append(f"id:{existing.id}")
                        continue
                    return self._replace(existing, duplicate_type, draft, previous)

                # Plain create or update
                now = self._timestamp()
                if previous is not None:
                    record = draft.with_changes(
                        created_at=previous.created_at,
                        updated_at=now,
                        exported_at=previous.exported_at,
                    )
                else:
                    record = draft.with_changes(
                        id=self.id_factory(), created_at=now, updated_at=now
                    )
                self.store.upsert(record)
                break

        action = "Updated" if previous else "Created"
        logger.info(f"{action} transfer {record.id} ({bank} {amount})")
        return Success(id=record.id, replaced=False)

    def _replace(
        self,
        existing: TransferRecord,
        duplicate_type: DuplicateType,
        draft: TransferRecord,
        previous: Optional[TransferRecord],
    ) -> SaveOutcome:
        record = draft.with_changes(
            id=existing.id,
            created_at=existing.created_at,
            updated_at=self._timestamp(),
            exported_at=existing.exported_at,
        )
        if previous is not None:
            # The edited transfer is merged into the one it duplicates
            self.store.merge(record, merged_id=previous.id)
            logger.info(f"Merged transfer {previous.id} into {existing.id}")
        else:
            self.store.upsert(record)
        logger.info(f"Replaced transfer {existing.id} ({duplicate_type.value} duplicate)")
        return Success(id=existing.id, replaced=True)

    def delete_by_id(self, transfer_id: str) -> None:
        """
        Raises:
            TransferNotFoundError: no transfer with this id
        """
        with self._locks.hold(f"id:{transfer_id}"):
            if not self.store.delete(transfer_id):
                raise TransferNotFoundError(transfer_id)
        logger.info(f"Deleted transfer {transfer_id}")

    def search(self, query: str) -> list[TransferRecord]:
        if not query or not query.strip():
            return self.store.list_all()
        return self.store.search(query)

    def mark_exported(self, records: list[TransferRecord]) -> int:
        """Stamp the given transfers as exported now."""
        return self.store.mark_exported([r.id for r in records], when=self._timestamp())
