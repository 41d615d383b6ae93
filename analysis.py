# analysis.py
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from ledger import Totals, compute_totals
from models import Transaction, TransactionType

ALL = "all"

TX_COLUMNS = ["id", "date", "description", "amount", "type", "category", "project_id"]
TS_COLUMNS = ["date", "income", "expense"]


@dataclass(frozen=True)
class LedgerFilter:
    project: str = ALL
    expense_category: str = ALL
    income_category: str = ALL


@dataclass(frozen=True)
class FilterOptions:
    expense: List[str]
    income: List[str]


@dataclass
class DashboardSummary:
    totals: Totals
    expense_by_category: Dict[str, float]
    income_by_category: Dict[str, float]
    time_series: pd.DataFrame
    options: FilterOptions = field(default_factory=lambda: FilterOptions([], []))


def txs_to_df(txs: Sequence[Transaction]) -> pd.DataFrame:
    df = pd.DataFrame(
        [[t.id, t.date, t.description, float(t.amount), t.type.value, t.category, t.project_id] for t in txs],
        columns=TX_COLUMNS,
    )
    df["amount"] = df["amount"].astype(float)
    return df


def apply_filter(df: pd.DataFrame, flt: LedgerFilter) -> pd.DataFrame:
    """
    Project filter applies to every row; each category filter only
    constrains rows of its own type.
    """
    if df.empty:
        return df
    keep = pd.Series(True, index=df.index)
    if flt.project != ALL:
        keep &= df["project_id"] == flt.project
    if flt.expense_category != ALL:
        keep &= (df["type"] != TransactionType.EXPENSE.value) | (df["category"] == flt.expense_category)
    if flt.income_category != ALL:
        keep &= (df["type"] != TransactionType.INCOME.value) | (df["category"] == flt.income_category)
    return df[keep]


def category_breakdown(df: pd.DataFrame, tx_type: TransactionType) -> Dict[str, float]:
    rows = df[df["type"] == tx_type.value]
    if rows.empty:
        return {}
    sums = rows.groupby("category", sort=False)["amount"].sum()
    return {str(k): float(v) for k, v in sums.items()}


def _parse_date(value: str):
    return pd.to_datetime(value, errors="coerce")


def time_series(df: pd.DataFrame) -> pd.DataFrame:
    """
    Income and expense per date string, oldest first.

    Buckets are keyed on the literal date text; ordering uses the parsed
    date, with unparseable dates at the end.
    """
    if df.empty:
        return pd.DataFrame(columns=TS_COLUMNS)
    is_income = df["type"] == TransactionType.INCOME.value
    frame = pd.DataFrame({
        "date": df["date"],
        "income": np.where(is_income, df["amount"], 0.0),
        "expense": np.where(is_income, 0.0, df["amount"]),
    })
    buckets = frame.groupby("date", sort=False)[["income", "expense"]].sum().reset_index()
    buckets["_when"] = pd.to_datetime(buckets["date"].map(_parse_date), errors="coerce")
    buckets = buckets.sort_values("_when", kind="mergesort", na_position="last")
    return buckets.drop(columns="_when").reset_index(drop=True)


def filter_options(txs: Sequence[Transaction]) -> FilterOptions:
    expense = {t.category for t in txs if t.type is TransactionType.EXPENSE}
    income = {t.category for t in txs if t.type is TransactionType.INCOME}
    return FilterOptions(expense=sorted(expense), income=sorted(income))


def filter_transactions(txs: Sequence[Transaction], flt: LedgerFilter) -> List[Transaction]:
    kept = set(apply_filter(txs_to_df(txs), flt)["id"])
    return [t for t in txs if t.id in kept]


def summarize(txs: Sequence[Transaction], flt: LedgerFilter = LedgerFilter()) -> DashboardSummary:
    """Every dashboard view for the current filter, recomputed from scratch."""
    df = apply_filter(txs_to_df(txs), flt)
    kept = set(df["id"])
    return DashboardSummary(
        totals=compute_totals(t for t in txs if t.id in kept),
        expense_by_category=category_breakdown(df, TransactionType.EXPENSE),
        income_by_category=category_breakdown(df, TransactionType.INCOME),
        time_series=time_series(df),
        options=filter_options(txs),
    )
