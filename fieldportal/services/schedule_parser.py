"""Monthly schedule CSV → per-employee calendar.

The sheet is the office Excel planner exported to CSV. Layout, as far as the
parser relies on it:

- some title/legend rows, then a header row whose cells after column 0 are
  day numbers (possibly followed by a weekday abbreviation, e.g. ``"3 lun"``),
- one row per employee: column 0 is the name (first line of the cell), the
  remaining cells are the task written on the day it starts. Blank or ``-``
  cells mean "same as the previous day".
"""
from __future__ import annotations
import calendar
import csv
import io
import re
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from fieldportal.schemas.schedule import ParsedSchedule, ScheduleDay, ScheduleEntry, ScheduleWeek
from fieldportal.utils.strings import first_line

# Rows that are groupings in the sheet, not people
IGNORED_ROW_LABELS = ("SCOPERTI", "UFFICIO BONIFICHE", "IMPIANTI/ ARESE")

CONTINUATION_MARK = "-"

DELIMITERS = (",", ";", "\t")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_day_number(cell: Optional[str]) -> Optional[int]:
    """Leading integer of ``cell`` if it is a day of month (1..31)."""
    m = _LEADING_INT.match(cell or "")
    if not m:
        return None
    n = int(m.group(1))
    return n if 1 <= n <= 31 else None


def is_day_header(row: Sequence[str]) -> bool:
    cells = row[1:]
    if not cells:
        return False
    hits = sum(1 for c in cells if parse_day_number(c) is not None)
    return hits * 2 > len(cells)


def find_day_header(rows: Sequence[Sequence[str]]) -> int:
    for i, row in enumerate(rows):
        if is_day_header(row):
            return i
    return -1


def employee_name(cell: Optional[str]) -> Optional[str]:
    return first_line(cell)


def is_ignored_label(name: str) -> bool:
    return any(name.startswith(label) for label in IGNORED_ROW_LABELS)


def read_csv_rows(text: str) -> List[List[str]]:
    """Split CSV text into rows, skipping rows with no content at all.

    The delimiter is whichever of ``,`` ``;`` or tab is most frequent in the
    first few KB (Excel exports with ``;`` under Italian locales).
    """
    text = (text or "").lstrip("\ufeff")
    sample = text[:4096]
    delimiter = max(DELIMITERS, key=sample.count)
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    return [row for row in reader if any(c.strip() for c in row)]


def _day_columns(header: Sequence[str], year: int, month: int) -> Dict[int, date]:
    _, days_in_month = calendar.monthrange(year, month)
    columns: Dict[int, date] = {}
    for col, cell in enumerate(header[1:], start=1):
        n = parse_day_number(cell)
        if n is not None and n <= days_in_month:
            columns[col] = date(year, month, n)
    return columns


def parse_schedule(
    rows: Sequence[Sequence[str]],
    year: int,
    month: int,
    *,
    weekdays_only: bool = False,
) -> ParsedSchedule:
    """Build the calendar for ``year``/``month`` from already-split rows.

    A task is carried forward over blank and ``-`` cells until the next
    non-blank cell or the end of the row. It never crosses into the next
    month since each upload covers one month. ``weekdays_only`` drops
    Saturday/Sunday entries from the output; the carry-forward still runs
    through them.
    """
    result = ParsedSchedule(year=year, month=month)
    header_idx = find_day_header(rows)
    if header_idx < 0:
        return result

    columns = _day_columns(rows[header_idx], year, month)
    schedules: Dict[str, Dict[date, ScheduleEntry]] = {}

    for row in rows[header_idx + 1:]:
        name = employee_name(row[0] if row else None)
        if not name or is_ignored_label(name):
            continue
        per_day = schedules.setdefault(name, {})

        last_task: Optional[str] = None
        for col in range(1, len(row)):
            day = columns.get(col)
            if day is None:
                continue
            cell = (row[col] or "").strip()
            starts_here = bool(cell) and cell != CONTINUATION_MARK
            if starts_here:
                last_task = cell
            if last_task is None:
                continue
            if weekdays_only and day.weekday() >= 5:
                continue
            per_day[day] = ScheduleEntry(task=last_task, is_start=starts_here)

    result.employees = sorted(schedules)
    result.schedules = schedules
    return result


def parse_schedule_csv(text: str, year: int, month: int, *, weekdays_only: bool = False) -> ParsedSchedule:
    return parse_schedule(read_csv_rows(text), year, month, weekdays_only=weekdays_only)


def start_of_week(d: date) -> date:
    """Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


def week_for(parsed: ParsedSchedule, employee: str, start: date) -> ScheduleWeek:
    monday = start_of_week(start)
    entries = parsed.schedules.get(employee, {})
    days = []
    for i in range(7):
        d = monday + timedelta(days=i)
        days.append(ScheduleDay(date=d, entry=entries.get(d)))
    return ScheduleWeek(employee=employee, start=monday, days=days)
