"""Domain models for contacts, job tickets and suppliers."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    JOB_CREATED = "Job Created"
    ESTIMATE_SCHEDULED = "Estimate Scheduled"
    QUOTE_SENT = "Quote Sent"
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    AWAITING_PARTS = "Awaiting Parts"
    SUPPLIER_RUN = "Supplier Run"
    COMPLETED = "Completed"
    PAID = "Paid"
    DECLINED = "Declined"


APPOINTMENT_STATUSES = frozenset({JobStatus.SCHEDULED, JobStatus.ESTIMATE_SCHEDULED})


@dataclass(slots=True)
class StatusHistoryEntry:
    """One status change on a job ticket.

    ``timestamp`` is an ISO string. Date-only values (``2025-03-14``) mark the
    day of the event without a clock time; date-time values also fix the time.
    """

    id: str
    status: JobStatus
    timestamp: str
    notes: Optional[str] = None
    duration: Optional[int] = None

    @property
    def has_clock_time(self) -> bool:
        return "T" in self.timestamp

    @property
    def occurred_at(self) -> datetime:
        """Timestamp as a naive local datetime."""
        parsed = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed

    @property
    def local_date(self) -> date:
        return self.occurred_at.date()


@dataclass(slots=True)
class JobTicket:
    id: str
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    job_location: Optional[str] = None
    notes: str = ""


@dataclass(slots=True)
class Contact:
    """A customer with a postal address and their job tickets."""

    id: str
    name: str
    address: str
    job_tickets: list[JobTicket] = field(default_factory=list)


@dataclass(slots=True)
class Supplier:
    id: str
    name: str
    address: str


@dataclass(slots=True)
class BusinessData:
    """Everything the route builder reads from the business records."""

    home_address: Optional[str]
    contacts: tuple[Contact, ...] = ()
    suppliers: tuple[Supplier, ...] = ()
