"""Document processing and chunk review state machines."""

from enum import Enum
from typing import Mapping, Optional

from curator.core.exceptions import InvalidTransitionError


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    REVIEW = "review"
    COMPLETED = "completed"
    FAILED = "failed"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FILTERED = "filtered"
    ENRICHING = "enriching"


class DocType(str, Enum):
    FHIR = "fhir"
    VBC = "vbc"
    GRANTS = "grants"
    BILLING = "billing"


# Chunks in these states count towards document completion
TERMINAL_REVIEW_STATUSES = frozenset(
    {ReviewStatus.APPROVED.value, ReviewStatus.REJECTED.value, ReviewStatus.FILTERED.value}
)

# Chunks a curator may still act on
REVIEWABLE_STATUSES = frozenset({ReviewStatus.PENDING.value, ReviewStatus.ENRICHING.value})

TERMINAL_DOCUMENT_STATUSES = frozenset(
    {DocumentStatus.COMPLETED.value, DocumentStatus.FAILED.value}
)

DOCUMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    DocumentStatus.PENDING.value: frozenset(
        {DocumentStatus.PROCESSING.value, DocumentStatus.FAILED.value}
    ),
    DocumentStatus.PROCESSING.value: frozenset(
        {DocumentStatus.REVIEW.value, DocumentStatus.COMPLETED.value, DocumentStatus.FAILED.value}
    ),
    DocumentStatus.REVIEW.value: frozenset(
        {DocumentStatus.COMPLETED.value, DocumentStatus.FAILED.value}
    ),
    DocumentStatus.COMPLETED.value: frozenset(),
    # Manual re-process is the only way out of failed
    DocumentStatus.FAILED.value: frozenset({DocumentStatus.PROCESSING.value}),
}


def _value(status) -> str:
    return status.value if isinstance(status, Enum) else status


def can_transition(current: str, target: str) -> bool:
    """Return True if a document may move from ``current`` to ``target``."""
    return _value(target) in DOCUMENT_TRANSITIONS.get(_value(current), frozenset())


def ensure_transition(current: str, target: str) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Document cannot move from '{_value(current)}' to '{_value(target)}'"
        )


def ensure_reviewable(review_status: str) -> None:
    """Refuse to review a chunk that already reached a terminal status."""
    status = _value(review_status)
    if status not in REVIEWABLE_STATUSES:
        raise InvalidTransitionError(f"Chunk already {status}")


def count_terminal(status_counts: Mapping[str, int]) -> int:
    """Sum the chunk counts whose status is terminal."""
    return sum(
        count for status, count in status_counts.items()
        if _value(status) in TERMINAL_REVIEW_STATUSES
    )


def should_complete(
    total_chunks: Optional[int],
    status_counts: Mapping[str, int],
    processing_status: str,
) -> bool:
    """Decide whether a document has every chunk reviewed.

    Args:
        total_chunks: Number of chunks the pipeline produced (None while unknown)
        status_counts: Mapping of review status to chunk count
        processing_status: Current document status

    Returns:
        bool: True if the document should move to completed
    """
    if total_chunks is None:
        return False
    if _value(processing_status) in TERMINAL_DOCUMENT_STATUSES:
        return False
    return count_terminal(status_counts) >= total_chunks


def check_score(name: str, value) -> None:
    """Validate that a score is a number within [0, 1] (None is allowed)."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number between 0 and 1")
    if not 0 <= value <= 1:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
