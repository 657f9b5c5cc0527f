from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ScrapeJobStatus(str, Enum):
    PENDING = "pending"
    TRIGGERED = "triggered"
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


TERMINAL_STATUSES = (ScrapeJobStatus.READY, ScrapeJobStatus.TIMED_OUT, ScrapeJobStatus.FAILED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScrapeJob:
    """Tracks one trigger/poll cycle against a job-based external source."""
    source_url: str
    job_id: Optional[str] = None
    status: ScrapeJobStatus = ScrapeJobStatus.PENDING
    attempts: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    def mark_triggered(self, job_id: str) -> None:
        """Record the opaque job id returned by the trigger call."""
        self.job_id = job_id
        self.status = ScrapeJobStatus.TRIGGERED

    def record_attempt(self) -> None:
        """Count one poll request."""
        self.status = ScrapeJobStatus.POLLING
        self.attempts += 1

    def mark_ready(self) -> None:
        self.status = ScrapeJobStatus.READY
        self.completed_at = _utcnow()

    def mark_timed_out(self) -> None:
        self.status = ScrapeJobStatus.TIMED_OUT
        self.completed_at = _utcnow()

    def fail(self, error_message: str) -> None:
        """Mark job as failed with error details."""
        self.status = ScrapeJobStatus.FAILED
        self.completed_at = _utcnow()
        self.error_message = error_message

    @property
    def duration_seconds(self) -> Optional[float]:
        if not self.completed_at:
            return None
        return (self.completed_at - self.created_at).total_seconds()

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<ScrapeJob {self.job_id} status={self.status.value} attempts={self.attempts}>"
