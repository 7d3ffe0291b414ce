"""
Reference Data Store

Two read-only tables loaded once at startup:
- Procedure Catalog (name → price)
- On-Call Roster (day-of-week + hour window → doctor)

Rows are validated with jsonschema; malformed rows are skipped with a
warning. An empty table after loading is a startup failure.
"""
import csv
import logging
import re
from dataclasses import dataclass
from pathlib import Path

import jsonschema
from jsonschema import ValidationError

log = logging.getLogger(__name__)

# CSV column names used by the clinic's spreadsheets
PROCEDURE_NAME_COL = "Procedimento"
PROCEDURE_PRICE_COL = "Valor"
ROSTER_DAY_COL = "Dia da Semana"
ROSTER_WINDOW_COL = "Horário"
ROSTER_DOCTOR_COL = "Médico"

PROCEDURE_ROW_SCHEMA = {
    "type": "object",
    "required": [PROCEDURE_NAME_COL, PROCEDURE_PRICE_COL],
    "properties": {
        PROCEDURE_NAME_COL: {"type": "string", "pattern": r"\S"},
        PROCEDURE_PRICE_COL: {"type": ["string", "number"]},
    },
}

ROSTER_ROW_SCHEMA = {
    "type": "object",
    "required": [ROSTER_DAY_COL, ROSTER_WINDOW_COL, ROSTER_DOCTOR_COL],
    "properties": {
        ROSTER_DAY_COL: {"type": "string", "pattern": r"\S"},
        ROSTER_WINDOW_COL: {"type": "string", "pattern": r"^\s*\d{1,2}\s*[Hh]?\s*-\s*\d{1,2}\s*[Hh]?\s*$"},
        ROSTER_DOCTOR_COL: {"type": "string", "pattern": r"\S"},
    },
}

_WINDOW_RE = re.compile(r"^\s*(\d{1,2})\s*[Hh]?\s*-\s*(\d{1,2})\s*[Hh]?\s*$")


class ReferenceDataError(RuntimeError):
    """Raised when reference data is missing or empty; the service must not start."""


@dataclass(frozen=True)
class ProcedureRecord:
    name: str
    price: str


@dataclass(frozen=True)
class DutyRecord:
    day_of_week: str
    start_hour: int
    end_hour: int  # 0 and 24 both mean end-of-day
    doctor_name: str


@dataclass(frozen=True)
class ReferenceData:
    procedures: tuple[ProcedureRecord, ...]
    roster: tuple[DutyRecord, ...]


def parse_window(window: str) -> tuple[int, int]:
    """
    Parse a roster window like "22H-0H" into (start_hour, end_hour)

    Examples:
        "8H-14H" → (8, 14)
        "22H - 0H" → (22, 0)
        "18H-24H" → (18, 24)
    """
    m = _WINDOW_RE.match(window or "")
    if not m:
        raise ValueError(f"invalid on-call window: {window!r}")
    start, end = int(m.group(1)), int(m.group(2))
    if not (0 <= start <= 23 and 0 <= end <= 24):
        raise ValueError(f"on-call window hours out of range: {window!r}")
    return start, end


def procedures_from_rows(rows) -> tuple[ProcedureRecord, ...]:
    records = []
    for i, row in enumerate(rows, start=1):
        try:
            jsonschema.validate(row, PROCEDURE_ROW_SCHEMA)
        except ValidationError as e:
            log.warning(f"[REF] Skipping procedure row {i}: {e.message}")
            continue
        records.append(ProcedureRecord(
            name=row[PROCEDURE_NAME_COL].strip(),
            price=str(row[PROCEDURE_PRICE_COL]).strip(),
        ))
    return tuple(records)


def roster_from_rows(rows) -> tuple[DutyRecord, ...]:
    records = []
    for i, row in enumerate(rows, start=1):
        try:
            jsonschema.validate(row, ROSTER_ROW_SCHEMA)
            start, end = parse_window(row[ROSTER_WINDOW_COL])
        except (ValidationError, ValueError) as e:
            log.warning(f"[REF] Skipping roster row {i}: {getattr(e, 'message', e)}")
            continue
        records.append(DutyRecord(
            day_of_week=row[ROSTER_DAY_COL].strip(),
            start_hour=start,
            end_hour=end,
            doctor_name=row[ROSTER_DOCTOR_COL].strip(),
        ))
    return tuple(records)


def read_csv(path: str | Path) -> list[dict]:
    """Read a header-row CSV into dicts, skipping blank lines"""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            rows = [
                row for row in csv.DictReader(f)
                if any((v or "").strip() for v in row.values() if isinstance(v, str))
            ]
    except OSError as e:
        log.error(f"[REF] Failed to read {path}: {e}")
        return []
    log.info(f"[REF] Loaded {len(rows)} rows from {path}")
    return rows


def build_reference_data(procedure_rows, roster_rows) -> ReferenceData:
    """Build the store from already-parsed rows; refuses empty tables."""
    data = ReferenceData(
        procedures=procedures_from_rows(procedure_rows),
        roster=roster_from_rows(roster_rows),
    )
    if not data.procedures or not data.roster:
        raise ReferenceDataError(
            f"reference data incomplete: {len(data.procedures)} procedures, {len(data.roster)} roster entries"
        )
    return data


def load_reference_data(prices_path: str | Path, roster_path: str | Path) -> ReferenceData:
    data = build_reference_data(read_csv(prices_path), read_csv(roster_path))
    log.info(f"[REF] Reference data ready: {len(data.procedures)} procedures, {len(data.roster)} roster entries")
    return data
