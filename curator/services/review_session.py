"""Navigation and progress over one document's chunks during review."""

from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from curator.core.lifecycle import ReviewStatus

ChunkType = TypeVar("ChunkType")


class ReviewSession(Generic[ChunkType]):
    """Cursor over an ordered chunk list with review statistics.

    Chunks only need a ``review_status`` attribute. The cursor always stays
    within ``[0, len(chunks) - 1]``.
    """

    def __init__(self, chunks: Sequence[ChunkType], index: int = 0):
        self.chunks: List[ChunkType] = list(chunks)
        self.index = 0
        self.go_to(index)

    @property
    def current(self) -> Optional[ChunkType]:
        if not self.chunks:
            return None
        return self.chunks[self.index]

    @property
    def has_next(self) -> bool:
        return self.index < len(self.chunks) - 1

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    def next(self) -> Optional[ChunkType]:
        if self.has_next:
            self.index += 1
        return self.current

    def previous(self) -> Optional[ChunkType]:
        if self.has_previous:
            self.index -= 1
        return self.current

    def go_to(self, index: int) -> Optional[ChunkType]:
        """Move the cursor, clamping out-of-range indexes to the nearest end."""
        if not self.chunks:
            self.index = 0
            return None
        self.index = max(0, min(index, len(self.chunks) - 1))
        return self.current

    @property
    def stats(self) -> Dict[str, int]:
        """Counts by review outcome; ``pending`` includes chunks still enriching."""
        stats = {"total": len(self.chunks), "approved": 0, "rejected": 0, "pending": 0, "filtered": 0}
        for chunk in self.chunks:
            status = chunk.review_status
            if status == ReviewStatus.APPROVED.value:
                stats["approved"] += 1
            elif status == ReviewStatus.REJECTED.value:
                stats["rejected"] += 1
            elif status == ReviewStatus.FILTERED.value:
                stats["filtered"] += 1
            elif status in (ReviewStatus.PENDING.value, ReviewStatus.ENRICHING.value):
                stats["pending"] += 1
        return stats

    @property
    def is_complete(self) -> bool:
        stats = self.stats
        return stats["total"] > 0 and stats["pending"] == 0

    @property
    def progress(self) -> float:
        """Share of chunks a curator approved or rejected, in [0, 1]."""
        stats = self.stats
        if stats["total"] == 0:
            return 0.0
        return (stats["approved"] + stats["rejected"]) / stats["total"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "stats": self.stats,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
            "is_complete": self.is_complete,
            "progress": self.progress,
        }
