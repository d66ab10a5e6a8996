"""
Data model (DeathRecord and derived views)
==========================================

Each entry in a death-register export is converted into a `DeathRecord`.
Records are immutable (`frozen=True`) so that:
- filters/sorts return new lists instead of editing records, and
- every derived view (stats, calendar, anniversary feed) can be recomputed
  from the same input without side effects.

Date fields hold whatever the export supplied (a `date`, a timestamp or a
string). They are coerced on use by `memorial.dates.to_date`, so a record
with a broken date is skipped by the computation that needs it instead of
failing at load time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Tuple

BURIAL = "BURIAL"
CREMATION = "CREMATION"
BURIAL_TYPES = (BURIAL, CREMATION)


@dataclass(frozen=True)
class DeathRecord:
    """One death-register entry."""
    id: str
    member_name: str
    date_of_death: Any
    date_of_birth: Any = None
    place_of_death: str = ""
    cause_of_death: str = ""
    burial_or_cremation: Optional[str] = None
    family_notified: bool = False
    funeral_date: Any = None
    photo_url: Optional[str] = None
    funeral_location: str = ""
    cemetery_location: str = ""
    next_of_kin: str = ""

    def search_text(self) -> str:
        """Text matched by free-text search (name, place and cause)."""
        return f"{self.member_name} {self.place_of_death or ''} {self.cause_of_death or ''}"


@dataclass(frozen=True)
class AgeBin:
    label: str
    low: int
    # None means open-ended (85+)
    high: Optional[int]
    count: int = 0
    percentage: int = 0


@dataclass(frozen=True)
class MonthlyPoint:
    """Counts for one calendar month of the trailing trend window."""
    month: date
    label: str
    deaths: int = 0
    burials: int = 0
    cremations: int = 0
    average_age: int = 0
    notified: int = 0
    pending: int = 0


@dataclass(frozen=True)
class Stats:
    """Cohort and trend statistics for a set of records."""
    total: int
    reference_date: date
    window_months: int
    bins: List[AgeBin] = field(default_factory=list)
    monthly: List[MonthlyPoint] = field(default_factory=list)
    # records dropped because their death date could not be parsed
    excluded: int = 0
    unknown_age: int = 0
    this_year: int = 0
    last_year: int = 0
    yoy_delta: int = 0
    this_month: int = 0
    burial_count: int = 0
    cremation_count: int = 0
    burial_percentage: int = 0
    cremation_percentage: int = 0
    average_age: float = 0.0
    family_notified: int = 0
    notification_rate: int = 0
    funeral_services_held: int = 0


@dataclass(frozen=True)
class Memorial:
    """A record placed on the calendar, with its age label for that year."""
    record: DeathRecord
    years_ago: int
    bucket: str


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_today: bool
    is_current_month: bool
    memorials: Tuple[Memorial, ...] = ()

    @property
    def records(self) -> Tuple[DeathRecord, ...]:
        return tuple(m.record for m in self.memorials)


@dataclass(frozen=True)
class RankedAnniversary:
    """An upcoming memorial anniversary, ranked by `occurrence`."""
    record: DeathRecord
    occurrence: date
    years_ago: int
    days_until: int
    bucket: str


@dataclass(frozen=True)
class MonthSummary:
    total_memorials: int
    this_month: int
    upcoming: int
