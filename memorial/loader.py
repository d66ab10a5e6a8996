"""
Register loader (export file -> DeathRecord list)
=================================================

Reads a death-register export and converts each row into a `DeathRecord`.

Key ideas:
- Excel (.xlsx), CSV and JSON exports are all read into a pandas DataFrame
  first, so column lookup works the same way for every format.
- JSON exports use the API's camelCase shape with a nested `member` object;
  `pd.json_normalize` flattens it to `member.firstName` style columns.
- We try multiple possible column names because exports vary.
- A row whose date of death cannot be parsed is kept (the raw value is
  carried) and logged; the analytics functions skip it later.
"""

from __future__ import annotations
import json
import logging
import os
import re
from typing import Any, List, Optional

import pandas as pd

from .dates import to_date
from .models import BURIAL_TYPES, DeathRecord

logger = logging.getLogger(__name__)

_TRUE = {"true", "yes", "y", "1", "1.0", "notified"}


def _is_missing(x: Any) -> bool:
    if x is None:
        return True
    if isinstance(x, (list, tuple, dict)):
        return len(x) == 0
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _to_str(x: Any) -> str:
    if _is_missing(x): return ""
    return str(x).strip()


def _to_bool(x: Any) -> bool:
    if _is_missing(x): return False
    if isinstance(x, bool): return x
    return str(x).strip().lower() in _TRUE


def _to_burial(x: Any) -> Optional[str]:
    v = _to_str(x).upper()
    return v if v in BURIAL_TYPES else None


def _to_date_cell(x: Any) -> Any:
    """Parsed date when possible, else the raw value (None for blanks)."""
    if _is_missing(x): return None
    d = to_date(x)
    return d if d is not None else x


def _first(x: Any) -> Optional[str]:
    # photoUrls comes through as a list in API exports
    if isinstance(x, (list, tuple)):
        x = x[0] if x else None
    s = _to_str(x)
    return s or None


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _opt_col(df: pd.DataFrame, *names: str) -> Optional[str]:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    return None


def _col(df: pd.DataFrame, *names: str) -> str:
    c = _opt_col(df, *names)
    if c is None:
        raise KeyError(f"Missing required column. Tried={names}. Available={list(df.columns)}")
    return c


def _json_rows(payload: Any) -> List[dict]:
    """Find the list of records in a JSON export (bare list or GraphQL envelope)."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        inner = payload.get("data", payload)
        if isinstance(inner, list):
            return inner
        if isinstance(inner, dict):
            for v in inner.values():
                if isinstance(v, list):
                    return v
    raise ValueError("JSON export must be a list of records or a {'data': {...: [...]}} envelope")


def read_frame(path: str) -> pd.DataFrame:
    """Read an export file into a DataFrame with trimmed column names."""
    if not os.path.exists(path):
        raise ValueError(f"File not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext in (".xlsx", ".xlsm"):
        df = pd.read_excel(path, engine="openpyxl")
    elif ext == ".csv":
        df = pd.read_csv(path)
    elif ext == ".json":
        with open(path, "r", encoding="utf-8") as f:
            df = pd.json_normalize(_json_rows(json.load(f)))
    else:
        raise ValueError(f"Unsupported export format: {ext or path} (use .xlsx, .csv or .json)")
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def records_from_frame(df: pd.DataFrame) -> List[DeathRecord]:
    """Convert an export DataFrame into DeathRecord objects."""
    death_col = _col(df, "dateOfDeath", "Date of Death", "Death Date", "DOD")
    id_col = _opt_col(df, "id", "Record ID", "Death Register ID")
    name_col = _opt_col(df, "memberName", "Member Name", "Name", "Full Name")
    first_col = _opt_col(df, "member.firstName", "firstName", "First Name")
    last_col = _opt_col(df, "member.lastName", "lastName", "Last Name", "Surname")
    birth_col = _opt_col(df, "member.dateOfBirth", "dateOfBirth", "Date of Birth", "DOB")
    place_col = _opt_col(df, "placeOfDeath", "Place of Death")
    cause_col = _opt_col(df, "causeOfDeath", "Cause of Death")
    burial_col = _opt_col(df, "burialCremation", "burialOrCremation", "Burial/Cremation", "Burial or Cremation")
    notified_col = _opt_col(df, "familyNotified", "Family Notified")
    funeral_col = _opt_col(df, "funeralDate", "Funeral Date")
    photo_col = _opt_col(df, "photoUrl", "photoUrls", "Photo URL", "Photo")
    funeral_loc_col = _opt_col(df, "funeralLocation", "Funeral Location")
    cemetery_col = _opt_col(df, "cemeteryLocation", "Cemetery Location", "Cemetery")
    kin_col = _opt_col(df, "nextOfKin", "Next of Kin")

    def get(row, col):
        return row[col] if col else None

    records: List[DeathRecord] = []
    for i, row in df.iterrows():
        name = _to_str(get(row, name_col))
        if not name:
            name = f"{_to_str(get(row, first_col))} {_to_str(get(row, last_col))}".strip()
        rec_id = _to_str(get(row, id_col)) or str(i)

        death = _to_date_cell(row[death_col])
        if to_date(death) is None:
            logger.warning("Row %s (%s): unparseable date of death %r; excluded from register views",
                           i, name or rec_id, death)

        records.append(DeathRecord(
            id=rec_id,
            member_name=name,
            date_of_death=death,
            date_of_birth=_to_date_cell(get(row, birth_col)),
            place_of_death=_to_str(get(row, place_col)),
            cause_of_death=_to_str(get(row, cause_col)),
            burial_or_cremation=_to_burial(get(row, burial_col)),
            family_notified=_to_bool(get(row, notified_col)),
            funeral_date=_to_date_cell(get(row, funeral_col)),
            photo_url=_first(get(row, photo_col)),
            funeral_location=_to_str(get(row, funeral_loc_col)),
            cemetery_location=_to_str(get(row, cemetery_col)),
            next_of_kin=_to_str(get(row, kin_col)),
        ))
    logger.info("Loaded %d death records", len(records))
    return records


def load_register(path: str) -> List[DeathRecord]:
    """Load a death-register export (.xlsx, .csv or .json)."""
    return records_from_frame(read_frame(path))
