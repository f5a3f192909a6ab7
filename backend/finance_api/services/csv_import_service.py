"""
Maps a parsed CSV table onto transaction payloads.

The client parses the file and chooses which column feeds which field; this
module converts the selected cells (amount to miliunits, date to a timestamp)
and validates each row before the batch is handed to bulk create.
"""
from datetime import datetime
from decimal import InvalidOperation
from typing import Dict, List, Optional
import logging

from finance_api.schemas import CsvImportRequest, TransactionCreate
from finance_api.utils import convert_amount_to_miliunits

logger = logging.getLogger(__name__)

REQUIRED_TARGETS = ("amount", "date", "payee")
DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


class CsvMappingError(ValueError):
    """Raised when the column mapping or a row cannot be converted."""


def _parse_date(value: str) -> datetime:
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised date '{value}'")


def _parse_amount(value: str) -> int:
    cleaned = value.strip().replace(",", "")
    try:
        return convert_amount_to_miliunits(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"unrecognised amount '{value}'") from exc


def _target_columns(columns: Dict[int, Optional[str]]) -> Dict[str, int]:
    targets: Dict[str, int] = {}
    for index, target in columns.items():
        if target is None:
            continue
        if index < 0:
            raise CsvMappingError(f"Invalid column index {index} for '{target}'")
        if target in targets:
            raise CsvMappingError(f"Column for '{target}' selected more than once")
        targets[target] = index

    missing = [target for target in REQUIRED_TARGETS if target not in targets]
    if missing:
        raise CsvMappingError(f"Missing required column(s): {', '.join(missing)}")
    return targets


def map_csv_rows(request: CsvImportRequest) -> List[TransactionCreate]:
    """
    Convert every non-blank row into a TransactionCreate for request.account_id.

    Raises:
        CsvMappingError: On an invalid mapping or the first row that cannot be converted;
            row numbers are 1-based and exclude the header
    """
    targets = _target_columns(request.columns)
    payloads = []

    for row_number, row in enumerate(request.rows, start=1):
        if not any(cell.strip() for cell in row):
            continue

        try:
            cells = {target: row[index] for target, index in targets.items()}
        except IndexError as exc:
            raise CsvMappingError(f"Row {row_number}: missing selected column") from exc

        try:
            payloads.append(
                TransactionCreate(
                    amount=_parse_amount(cells["amount"]),
                    date=_parse_date(cells["date"]),
                    payee=cells["payee"],
                    notes=cells.get("notes"),
                    account_id=request.account_id,
                )
            )
        except ValueError as exc:
            raise CsvMappingError(f"Row {row_number}: {exc}") from exc

    if not payloads:
        raise CsvMappingError("No rows to import")

    logger.info(f"[IMPORT] Mapped {len(payloads)} CSV row(s) to transactions")
    return payloads
