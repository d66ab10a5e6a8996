"""
Register engine (filter, sort, export)
======================================

The register listing is a pure transform:

    records + FilterCriteria -> ordered subset

`filter_and_sort` never edits the input list and never keeps anything between
calls. The *current selection* (search term, year, sort order) belongs to the
host; `RegisterSession` is that host-side state for the CLI, with undo/redo
stacks of criteria snapshots. Every call to `RegisterSession.current()`
recomputes the listing from the full record list.
"""

from __future__ import annotations
import csv
import json
import unicodedata
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from .dates import to_date
from .models import DeathRecord

SORT_DATE_OF_DEATH = "dateOfDeath"
SORT_NAME = "name"
SORT_FUNERAL_DATE = "funeralDate"
SORT_KEYS = (SORT_DATE_OF_DEATH, SORT_NAME, SORT_FUNERAL_DATE)

EXPORT_COLUMNS = [
    "id", "member_name", "date_of_birth", "date_of_death", "place_of_death",
    "cause_of_death", "burial_or_cremation", "family_notified", "funeral_date",
    "funeral_location", "cemetery_location", "next_of_kin", "photo_url",
]


@dataclass(frozen=True)
class FilterCriteria:
    """What the register listing is currently showing."""
    search_term: Optional[str] = None
    year: Optional[int] = None
    sort_key: str = SORT_DATE_OF_DEATH


def filter_and_sort(records: Sequence[DeathRecord], criteria: Optional[FilterCriteria] = None) -> List[DeathRecord]:
    """Return the records matching `criteria`, in the requested order.

    Records whose death date cannot be parsed are left out.
    """
    if records is None:
        raise TypeError("records must be a sequence, not None")
    criteria = criteria or FilterCriteria()
    key_fn = _sort_function(criteria.sort_key)

    # matched as typed: only an empty term means "everything"
    term = (criteria.search_term or "").lower()
    out: List[DeathRecord] = []
    for r in records:
        death = to_date(r.date_of_death)
        if death is None:
            continue
        if criteria.year is not None and death.year != criteria.year:
            continue
        if term and term not in r.search_text().lower():
            continue
        out.append(r)
    return key_fn(out)


def available_years(records: Sequence[DeathRecord]) -> List[int]:
    """Distinct years of death, newest first (feeds the year picker)."""
    years = {d.year for d in (to_date(r.date_of_death) for r in records) if d is not None}
    return sorted(years, reverse=True)


# ---------------- Sorting ----------------
def _sort_function(sort_key: str) -> Callable[[List[DeathRecord]], List[DeathRecord]]:
    k = (sort_key or SORT_DATE_OF_DEATH).strip()
    if k == SORT_DATE_OF_DEATH:
        # sorted(reverse=True) keeps equal keys in input order
        return lambda rs: sorted(rs, key=lambda r: to_date(r.date_of_death), reverse=True)
    if k == SORT_NAME:
        return lambda rs: sorted(rs, key=lambda r: collation_key(r.member_name))
    if k == SORT_FUNERAL_DATE:
        return _sort_by_funeral_date
    raise ValueError(f"sort key must be one of: {', '.join(SORT_KEYS)}")


def _sort_by_funeral_date(rs: List[DeathRecord]) -> List[DeathRecord]:
    # Undated funerals go last and compare equal among themselves
    dated = [(to_date(r.funeral_date), r) for r in rs]
    with_date = [(d, r) for d, r in dated if d is not None]
    without = [r for d, r in dated if d is None]
    with_date.sort(key=lambda pair: pair[0], reverse=True)
    return [r for _, r in with_date] + without


def collation_key(name: Optional[str]) -> str:
    """Accent- and case-insensitive key for name ordering."""
    decomposed = unicodedata.normalize("NFKD", name or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()


# ---------------- Host-side session ----------------
@dataclass
class RegisterSession:
    """Current register selection for an interactive host.

    Only the criteria are stored; the listing is recomputed on demand.
    """
    records: List[DeathRecord]
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    dataset_path: Optional[str] = None
    # Stores CLI commands (for reproducibility in reports)
    command_log: List[str] = field(default_factory=list)

    _undo: List[FilterCriteria] = field(default_factory=list, init=False)
    _redo: List[FilterCriteria] = field(default_factory=list, init=False)

    def current(self) -> List[DeathRecord]:
        return filter_and_sort(self.records, self.criteria)

    def _apply(self, criteria: FilterCriteria) -> None:
        # validate before touching history
        _sort_function(criteria.sort_key)
        self._undo.append(self.criteria)
        self._redo.clear()
        self.criteria = criteria

    def search(self, term: Optional[str]) -> None:
        self._apply(replace(self.criteria, search_term=term or None))

    def filter_year(self, year: Optional[int]) -> None:
        self._apply(replace(self.criteria, year=year))

    def sort_by(self, sort_key: str) -> None:
        self._apply(replace(self.criteria, sort_key=sort_key))

    def reset(self) -> None:
        """Clear search and year filter and restore the default order."""
        self._apply(FilterCriteria())

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.criteria)
        self.criteria = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.criteria)
        self.criteria = self._redo.pop()
        return True


# ---------------- Export ----------------
def _export_value(v: Any) -> Any:
    if isinstance(v, date):
        return v.isoformat()
    d = to_date(v) if isinstance(v, str) else None
    return d.isoformat() if d is not None else v


def _export_row(r: DeathRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for col in EXPORT_COLUMNS:
        v = getattr(r, col)
        row[col] = _export_value(v) if col in ("date_of_birth", "date_of_death", "funeral_date") else v
    return row


def export_csv(records: Sequence[DeathRecord], path: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=EXPORT_COLUMNS)
        w.writeheader()
        for r in records:
            w.writerow(_export_row(r))


def export_json(records: Sequence[DeathRecord], path: str) -> None:
    """Export records to a JSON list (field names preserved)."""
    payload = [_export_row(r) for r in records]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
