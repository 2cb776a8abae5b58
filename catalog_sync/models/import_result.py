"""Import run result data models."""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple

MAX_ERROR_MESSAGES = 100


@dataclass(frozen=True)
class ImportOutcome:
    """Final, immutable result of one import run."""

    success: bool
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    total: int = 0
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    duration: float = 0.0  # seconds
    error_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @classmethod
    def failure(cls, message: str, error_type: str) -> "ImportOutcome":
        """Outcome for a run that failed before any item was processed."""
        return cls(success=False, errors=(message,), error_type=error_type)

    @property
    def failed(self) -> int:
        """Items that ended in the error list (warnings excluded)."""
        return max(self.total - self.imported - self.updated - self.skipped, 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the caller-facing dictionary."""
        return {
            "success": self.success,
            "imported": self.imported,
            "updated": self.updated,
            "skipped": self.skipped,
            "total": self.total,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "duration": round(self.duration, 2),
            "error_type": self.error_type,
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        summary_lines = [
            f"Import completed in {self.duration:.2f}s",
            f"Total items: {self.total}",
            f"Imported: {self.imported}",
            f"Updated: {self.updated}",
            f"Skipped: {self.skipped}",
            f"Failed: {self.failed}",
        ]

        if self.errors:
            summary_lines.append(f"\nErrors ({len(self.errors)}):")
            for error in self.errors[:5]:
                summary_lines.append(f"  - {error}")
            if len(self.errors) > 5:
                summary_lines.append(f"  ... and {len(self.errors) - 5} more errors")

        return "\n".join(summary_lines)


class ResultAggregator:
    """
    Collects counts and error messages while a run is in flight.

    Items of a batch report concurrently, so every mutation goes through
    the same lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.imported = 0
        self.updated = 0
        self.skipped = 0
        self.total = 0
        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._dropped_errors = 0
        self.start_time: datetime = datetime.utcnow()
        self.end_time: Optional[datetime] = None

    def set_total(self, total: int):
        with self._lock:
            self.total = total

    def record_imported(self):
        with self._lock:
            self.imported += 1

    def record_updated(self):
        with self._lock:
            self.updated += 1

    def record_skipped(self):
        with self._lock:
            self.skipped += 1

    def record_error(self, item_name: str, reason: str):
        """Append ``"<item name>: <reason>"``; past the cap only a count is kept."""
        with self._lock:
            if len(self._errors) < MAX_ERROR_MESSAGES:
                self._errors.append(f"{item_name}: {reason}")
            else:
                self._dropped_errors += 1

    def add_warning(self, message: str):
        with self._lock:
            self._warnings.append(message)

    def snapshot(self) -> ImportOutcome:
        """Freeze the current state into an ``ImportOutcome``."""
        with self._lock:
            self.end_time = datetime.utcnow()
            errors = list(self._warnings) + list(self._errors)
            if self._dropped_errors:
                errors.append(f"... and {self._dropped_errors} more errors")
            return ImportOutcome(
                success=True,
                imported=self.imported,
                updated=self.updated,
                skipped=self.skipped,
                total=self.total,
                errors=tuple(errors),
                warnings=tuple(self._warnings),
                duration=(self.end_time - self.start_time).total_seconds(),
            )
