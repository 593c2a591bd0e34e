"""Spreadsheet parsing: workbook bytes -> validated CoupleRow list.

Flow:
1. Check the declared file extension (xlsx / xls)
2. Open the first worksheet with openpyxl (cached values, not formulas)
3. Locate the required headers in row 1 by name (order-independent)
4. Coerce every data row in one pass, collecting all problems

Nothing here touches the database; a rejected workbook raises
UploadValidationError before any store interaction.
"""

import logging
import math
import re
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from io import BytesIO
from typing import Any
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from survey_api.schemas import CoupleRow
from survey_api.services.errors import UploadValidationError

logger = logging.getLogger("uvicorn.error")

ALLOWED_EXTENSIONS = ("xlsx", "xls")

HEADER_COUPLE_NO = "Couple No"
HEADER_MEN_AGE = "Men Age"
HEADER_WOMEN_AGE = "Women Age"
HEADER_MARRIAGE_DURATION = "Marriage Duration"
HEADER_TRAVEL_PLAN = "Travel Plan"

REQUIRED_HEADERS = (
    HEADER_COUPLE_NO,
    HEADER_MEN_AGE,
    HEADER_WOMEN_AGE,
    HEADER_MARRIAGE_DURATION,
    HEADER_TRAVEL_PLAN,
)

TRAVEL_PLAN_MAX_LENGTH = 255

# Leading integer, e.g. "52", "+3", "-1", "52 years", "20.9"
_INT_PREFIX = re.compile(r"^[+-]?\d+")
# Whole integer only, e.g. "7", "7.0"; "7.9" and "7a" do not match
_INT_EXACT = re.compile(r"^[+-]?\d+(\.0*)?$")


# ============================================================
# Cell helpers
# ============================================================


def file_extension(filename: str | None) -> str:
    """Lower-cased extension without the dot ("" when there is none)."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()


def check_extension(filename: str | None) -> str:
    """Reject anything that is not declared as an Excel workbook."""
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadValidationError("Invalid file type. Only .xlsx or .xls are allowed.")
    return ext


def coerce_int(value: Any) -> int | None:
    """Read a cell as an integer using leading-integer semantics.

    Floats are truncated toward zero and strings are parsed from their leading
    digits. Returns None when no integer can be read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, (datetime, date, time, timedelta)):
        return None
    match = _INT_PREFIX.match(str(value).strip())
    return int(match.group()) if match else None


def coerce_identifier(value: Any) -> int | None:
    """Read a cell as a whole integer; fractional or suffixed values give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return int(value)
    if isinstance(value, (datetime, date, time, timedelta)):
        return None
    text = str(value).strip()
    if not _INT_EXACT.match(text):
        return None
    return int(text.split(".", 1)[0])


def cell_text(value: Any) -> str:
    """Trimmed string form of a cell ("" for empty cells)."""
    if value is None:
        return ""
    return str(value).strip()


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _is_blank(row: Sequence[Any]) -> bool:
    return all(cell_text(value) == "" for value in row)


# ============================================================
# Workbook reading
# ============================================================


def read_first_sheet(content: bytes) -> list[tuple[Any, ...]]:
    """Return the first worksheet's rows as tuples of cell values.

    Raises:
        UploadValidationError: The bytes are not a readable workbook or it has no sheet.
    """
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, TypeError, ValueError) as e:
        logger.info(f"Workbook could not be opened: {e!r}")
        raise UploadValidationError("Could not read the Excel file. Is it a valid workbook?") from e

    if not workbook.worksheets:
        workbook.close()
        raise UploadValidationError("Excel file seems empty or sheet not found.")

    try:
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    except (KeyError, TypeError, ValueError) as e:
        logger.info(f"Worksheet could not be read: {e!r}")
        raise UploadValidationError("Excel file seems empty or sheet not found.") from e
    finally:
        workbook.close()


def locate_headers(header_row: Sequence[Any]) -> dict[str, int]:
    """Map each required header to its column index.

    Matching is by trimmed name; the first occurrence wins and extra columns
    are ignored.

    Raises:
        UploadValidationError: One or more required headers are absent
            (`missing` lists them in canonical order).
    """
    positions: dict[str, int] = {}
    for index, value in enumerate(header_row):
        name = cell_text(value)
        if name and name not in positions:
            positions[name] = index

    missing = [header for header in REQUIRED_HEADERS if header not in positions]
    if missing:
        logger.info(f"Missing columns: {missing}")
        raise UploadValidationError(
            f"Missing required columns in Excel file: {', '.join(missing)}",
            missing=missing,
        )
    return {header: positions[header] for header in REQUIRED_HEADERS}


# ============================================================
# Row validation
# ============================================================


def parse_couple_rows(
    data_rows: Iterable[Sequence[Any]],
    columns: dict[str, int],
    first_row_number: int = 2,
) -> list[CoupleRow]:
    """Validate data rows and build typed CoupleRow records.

    Completely blank rows are skipped. Every remaining row is checked; all
    problems are collected before failing so the caller sees them at once.

    Raises:
        UploadValidationError: No data rows, or at least one invalid row.
    """
    candidates = [
        (first_row_number + offset, row)
        for offset, row in enumerate(data_rows)
        if not _is_blank(row)
    ]
    if not candidates:
        raise UploadValidationError("No data rows found in the Excel file.")

    couples: list[CoupleRow] = []
    problems: list[str] = []

    for row_number, row in candidates:
        raw_couple_no = _cell(row, columns[HEADER_COUPLE_NO])
        label = cell_text(raw_couple_no) or "Unknown"
        row_problems: list[str] = []

        couple_no = coerce_identifier(raw_couple_no)
        if couple_no is None:
            row_problems.append(f"Invalid Couple No {label!r} (row {row_number}).")

        men_age = coerce_int(_cell(row, columns[HEADER_MEN_AGE]))
        women_age = coerce_int(_cell(row, columns[HEADER_WOMEN_AGE]))
        duration = coerce_int(_cell(row, columns[HEADER_MARRIAGE_DURATION]))
        numbers = (men_age, women_age, duration)
        if any(n is None for n in numbers):
            row_problems.append(
                f"Invalid non-numeric data found in age or duration columns for Couple No {label} (row {row_number})."
            )
        elif any(n < 0 for n in numbers):
            row_problems.append(
                f"Negative age or duration for Couple No {label} (row {row_number})."
            )

        travel_plan = cell_text(_cell(row, columns[HEADER_TRAVEL_PLAN]))
        if not travel_plan:
            row_problems.append(f"Missing Travel Plan for Couple No {label} (row {row_number}).")
        elif len(travel_plan) > TRAVEL_PLAN_MAX_LENGTH:
            row_problems.append(
                f"Travel Plan longer than {TRAVEL_PLAN_MAX_LENGTH} characters for Couple No {label} (row {row_number})."
            )

        if row_problems:
            problems.extend(row_problems)
            continue

        couples.append(
            CoupleRow(
                row_number=row_number,
                couple_no=couple_no,
                men_age=men_age,
                women_age=women_age,
                marriage_duration=duration,
                travel_plan=travel_plan,
            )
        )

    if problems:
        message = problems[0]
        if len(problems) > 1:
            message = f"{message} ({len(problems) - 1} more problem(s) in the file.)"
        raise UploadValidationError(message, problems=problems)

    return couples


def parse_survey_workbook(content: bytes, filename: str | None) -> list[CoupleRow]:
    """Parse an uploaded survey workbook into validated rows.

    Args:
        content: Raw workbook bytes.
        filename: Client-declared file name (used for the extension check).

    Returns:
        One CoupleRow per non-blank data row, in sheet order.

    Raises:
        UploadValidationError: Any schema or data problem.
    """
    check_extension(filename)
    rows = read_first_sheet(content)

    header_row: Sequence[Any] = rows[0] if rows else ()
    columns = locate_headers(header_row)
    couples = parse_couple_rows(rows[1:], columns)

    logger.info(f"Parsed {len(couples)} couple rows from {filename}")
    return couples
