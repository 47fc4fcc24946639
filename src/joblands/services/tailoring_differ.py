import logging
from typing import Any

from pydantic import ValidationError

from joblands.core.exceptions import InvalidChangeRecordError
from joblands.schemas.document import StructuredDocument
from joblands.schemas.tailoring import ChangeRecord, ChangeSection

logger = logging.getLogger(__name__)


def _check_entry(entry: Any, proposed: StructuredDocument, seen_ids: set[str]) -> ChangeRecord:
    if not isinstance(entry, dict):
        raise InvalidChangeRecordError("change entry is not an object", entry)
    try:
        record = ChangeRecord.model_validate(entry)
    except ValidationError as e:
        raise InvalidChangeRecordError(
            "; ".join(err["msg"] for err in e.errors(include_url=False)), entry
        ) from e

    if record.id in seen_ids:
        raise InvalidChangeRecordError(f"duplicate change id {record.id!r}", entry)
    if (
        record.section is ChangeSection.EXPERIENCE
        and record.experience_index is not None
        and record.experience_index >= len(proposed.experience)
    ):
        raise InvalidChangeRecordError(
            f"experienceIndex {record.experience_index} is out of range "
            f"({len(proposed.experience)} roles)",
            entry,
        )
    return record


def produce_changes(
    original: StructuredDocument | None,
    proposed: StructuredDocument,
    change_log: list[Any] | None = None,
) -> list[ChangeRecord]:
    """Return the checked change log for a tailored rewrite of ``original``.

    Entries that break a change-record invariant are logged and dropped; the
    rest keep the order the model produced them in. Without a change log the
    proposed document is accepted as-is and no changes are reported.
    """
    if change_log is None:
        logger.info("No change log supplied; accepting proposed resume without diff")
        return []

    changes: list[ChangeRecord] = []
    seen_ids: set[str] = set()
    for position, entry in enumerate(change_log):
        try:
            record = _check_entry(entry, proposed, seen_ids)
        except InvalidChangeRecordError as e:
            logger.warning("Dropping change entry #%d: %s", position, e)
            continue
        seen_ids.add(record.id)
        changes.append(record)

    dropped = len(change_log) - len(changes)
    logger.info(
        "Change log: %d kept, %d dropped (%s roles originally, %d proposed)",
        len(changes),
        dropped,
        len(original.experience) if original else "?",
        len(proposed.experience),
    )
    return changes
