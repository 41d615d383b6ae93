# codec.py
"""
Delimited text export/import of a whole ledger document.

The format is CSV-like but hand-rolled: one header row, then one row per
transaction with the columns Date, Description, Amount, Type, Category,
Project. Type and Project are written as display text (a localized label and
the project name), so decoding is lossy: project ids are minted fresh and any
type label that is not the income label reads back as an expense.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

import structlog

from errors import EmptyResultError, FormatError, NoDataRowsError
from models import (
    LedgerDocument,
    Project,
    Transaction,
    TransactionType,
    new_project_id,
    new_transaction_id,
)

log = structlog.get_logger(__name__)

MIN_FIELDS = 5


@dataclass(frozen=True)
class Locale:
    headers: Tuple[str, str, str, str, str, str]
    income_label: str
    expense_label: str
    no_project: str

    def type_label(self, tx_type: TransactionType) -> str:
        return self.income_label if tx_type is TransactionType.INCOME else self.expense_label

    def parse_type(self, label: str) -> TransactionType:
        if self.income_label.lower() in (label or "").lower():
            return TransactionType.INCOME
        return TransactionType.EXPENSE


LOCALES: Dict[str, Locale] = {
    "en": Locale(
        headers=("Date", "Description", "Amount", "Type", "Category", "Project"),
        income_label="Income",
        expense_label="Expense",
        no_project="No project",
    ),
    "es": Locale(
        headers=("Fecha", "Descripción", "Monto", "Tipo", "Categoría", "Proyecto"),
        income_label="Ingreso",
        expense_label="Gasto",
        no_project="Sin Proyecto",
    ),
}

DEFAULT_LOCALE = LOCALES["en"]


def get_locale(code: Optional[str]) -> Locale:
    return LOCALES.get((code or "en").lower(), DEFAULT_LOCALE)


def escape_field(value) -> str:
    if value is None:
        return ""
    s = str(value)
    if "," in s or '"' in s or "\n" in s:
        return '"' + s.replace('"', '""') + '"'
    return s


def format_amount(amount: float) -> str:
    amount = float(amount)
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


def encode_document(document: LedgerDocument, locale: Locale = DEFAULT_LOCALE) -> str:
    names = {p.id: p.name for p in document.projects}
    lines = [",".join(escape_field(h) for h in locale.headers)]
    for t in document.transactions:
        row = [
            t.date,
            t.description,
            format_amount(t.amount),
            locale.type_label(t.type),
            t.category,
            names.get(t.project_id, locale.no_project),
        ]
        lines.append(",".join(escape_field(v) for v in row))
    return "\n".join(lines)


def split_row(line: str) -> List[str]:
    """Split one line on commas, honouring double-quoted regions."""
    fields = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current))
    return fields


def parse_amount(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return abs(value)


def decode_document(text: str, locale: Locale = DEFAULT_LOCALE) -> LedgerDocument:
    """
    Parse exported text back into a fresh document.

    Bad rows are skipped one by one. The whole decode fails with FormatError
    when there is no header plus data, and with EmptyResultError when no row
    survives.
    """
    lines = [l.strip() for l in (text or "").split("\n")]
    lines = [l for l in lines if l]
    if not lines:
        raise FormatError("Invalid format: the file is empty")
    if len(lines) < 2:
        raise NoDataRowsError("Invalid format: too few lines")

    transactions = []
    project_ids: Dict[str, str] = {}
    expense_categories: List[str] = []
    income_categories: List[str] = []

    # the header is skipped by position, column order is fixed
    for lineno, line in enumerate(lines[1:], start=2):
        cols = split_row(line)
        if len(cols) < MIN_FIELDS:
            log.debug("import_row_skipped", line=lineno, reason="too_few_fields", fields=len(cols))
            continue
        tx_date, description, raw_amount, type_label, category = cols[:MIN_FIELDS]
        amount = parse_amount(raw_amount)
        if amount is None or not tx_date:
            log.debug("import_row_skipped", line=lineno, reason="bad_amount_or_date")
            continue

        tx_type = locale.parse_type(type_label)
        registry = income_categories if tx_type is TransactionType.INCOME else expense_categories
        if category not in registry:
            registry.append(category)

        project_name = cols[5] if len(cols) > 5 and cols[5] else locale.no_project
        if project_name not in project_ids:
            project_ids[project_name] = new_project_id()

        transactions.append(Transaction(
            id=new_transaction_id(),
            date=tx_date,
            description=description,
            amount=amount,
            type=tx_type,
            category=category,
            project_id=project_ids[project_name],
        ))

    if not transactions:
        raise EmptyResultError("No valid records could be read")

    log.info(
        "document_decoded",
        rows=len(lines) - 1,
        transactions=len(transactions),
        projects=len(project_ids),
    )
    return LedgerDocument(
        transactions=transactions,
        projects=[Project(id=pid, name=name) for name, pid in project_ids.items()],
        expense_categories=expense_categories,
        income_categories=income_categories,
    )


def export_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"woodframe_records_{day.isoformat()}.csv"


def read_import_file(path: str) -> str:
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def write_export_file(path: str, document: LedgerDocument, locale: Locale = DEFAULT_LOCALE) -> int:
    text = encode_document(document, locale)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return len(document.transactions)
