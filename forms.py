# forms.py
import math
import re
from typing import Optional, Union

import pandas as pd

from errors import ValidationError
from models import TransactionDraft, TransactionType

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_type(value: Union[str, TransactionType]) -> TransactionType:
    """Accept the raw tag or a loose label such as 'income' / 'expense'."""
    if isinstance(value, TransactionType):
        return value
    text = str(value or "").strip().upper()
    for tx_type in TransactionType:
        if text == tx_type.value or text == tx_type.value[0]:
            return tx_type
    raise ValidationError("type", f"Unknown transaction type: {value!r}")


def build_draft(
    date,
    amount,
    tx_type: Union[str, TransactionType],
    category: Optional[str],
    project_id: Optional[str],
    description: Optional[str] = "",
) -> TransactionDraft:
    """
    Check a transaction form before it reaches the ledger.

    Raises ValidationError naming the first offending field.
    """
    date_text = str(date).strip() if date is not None else ""
    if not date_text:
        raise ValidationError("date", "Date is required")
    # pandas also parses relative words such as "now" and "today"
    if not ISO_DATE.match(date_text) or pd.isna(pd.to_datetime(date_text, errors="coerce")):
        raise ValidationError("date", f"Not a valid date: {date_text}")

    if not project_id or not category:
        raise ValidationError("project" if not project_id else "category", "Project or category not selected")

    if amount is None or (isinstance(amount, str) and not amount.strip()):
        raise ValidationError("amount", "Amount is required")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("amount", f"Amount is not a number: {amount!r}")
    if not math.isfinite(value):
        raise ValidationError("amount", f"Amount is not a finite number: {amount!r}")

    return TransactionDraft(
        date=date_text,
        description=(description or "").strip(),
        amount=abs(value),
        type=parse_type(tx_type),
        category=category,
        project_id=project_id,
    )
