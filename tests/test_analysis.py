import pytest

from analysis import (
    ALL,
    LedgerFilter,
    apply_filter,
    category_breakdown,
    filter_options,
    filter_transactions,
    summarize,
    time_series,
    txs_to_df,
)
from models import Transaction, TransactionType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


def tx(tx_id, date, amount, tx_type, category="Labor", project_id="p1"):
    return Transaction(
        id=tx_id, date=date, amount=amount, type=tx_type,
        category=category, project_id=project_id,
    )


@pytest.fixture
def sample():
    return [
        tx("a", "2024-01-03", 100, EXPENSE, "Lumber", "p1"),
        tx("b", "2024-01-01", 50, INCOME, "Deposit", "p1"),
        tx("c", "2024-01-01", 20, EXPENSE, "Labor", "p2"),
        tx("d", "2024-01-02", 30, EXPENSE, "Lumber", "p2"),
        tx("e", "2024-01-02", 500, INCOME, "Final Payment", "p2"),
    ]


class TestFilter:
    def test_all_passes_everything(self, sample):
        assert len(apply_filter(txs_to_df(sample), LedgerFilter())) == len(sample)

    def test_project_filter(self, sample):
        kept = filter_transactions(sample, LedgerFilter(project="p2"))
        assert [t.id for t in kept] == ["c", "d", "e"]

    def test_expense_category_filter_keeps_income_rows(self, sample):
        kept = filter_transactions(sample, LedgerFilter(expense_category="Lumber"))
        assert [t.id for t in kept] == ["a", "b", "d", "e"]

    def test_income_category_filter_keeps_expense_rows(self, sample):
        kept = filter_transactions(sample, LedgerFilter(income_category="Deposit"))
        assert [t.id for t in kept] == ["a", "b", "c", "d"]

    def test_filters_combine_with_and(self, sample):
        flt = LedgerFilter(project="p2", expense_category="Lumber", income_category="Deposit")
        assert [t.id for t in filter_transactions(sample, flt)] == ["d"]

    def test_empty_input(self):
        assert apply_filter(txs_to_df([]), LedgerFilter(project="p1")).empty


class TestCategoryBreakdown:
    def test_sums_per_category(self, sample):
        df = txs_to_df(sample)
        assert category_breakdown(df, EXPENSE) == {"Lumber": 130.0, "Labor": 20.0}
        assert category_breakdown(df, INCOME) == {"Deposit": 50.0, "Final Payment": 500.0}

    def test_groups_without_rows_are_omitted(self, sample):
        df = apply_filter(txs_to_df(sample), LedgerFilter(project="p1"))
        assert category_breakdown(df, EXPENSE) == {"Lumber": 100.0}

    def test_no_rows_of_type(self):
        df = txs_to_df([tx("a", "2024-01-01", 5, EXPENSE)])
        assert category_breakdown(df, INCOME) == {}


class TestTimeSeries:
    def test_project_filter_and_chronological_order(self):
        txs = [
            tx("a", "2024-01-03", 100, EXPENSE, project_id="p1"),
            tx("b", "2024-01-01", 50, INCOME, project_id="p1"),
            tx("c", "2024-01-01", 20, EXPENSE, project_id="p2"),
        ]
        ts = time_series(apply_filter(txs_to_df(txs), LedgerFilter(project="p1")))
        assert ts.to_dict("records") == [
            {"date": "2024-01-01", "income": 50.0, "expense": 0.0},
            {"date": "2024-01-03", "income": 0.0, "expense": 100.0},
        ]

    def test_sums_within_a_date(self, sample):
        ts = time_series(txs_to_df(sample))
        assert list(ts["date"]) == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert list(ts["income"]) == [50.0, 500.0, 0.0]
        assert list(ts["expense"]) == [20.0, 30.0, 100.0]

    def test_differently_written_dates_are_separate_buckets(self):
        txs = [
            tx("a", "2024-01-05", 1, EXPENSE),
            tx("b", "2024/01/05", 2, EXPENSE),
            tx("c", "2024-01-04", 3, EXPENSE),
        ]
        ts = time_series(txs_to_df(txs))
        assert list(ts["date"]) == ["2024-01-04", "2024-01-05", "2024/01/05"]

    def test_unparseable_dates_sort_last(self):
        txs = [tx("a", "someday", 1, EXPENSE), tx("b", "2024-01-01", 2, EXPENSE)]
        assert list(time_series(txs_to_df(txs))["date"]) == ["2024-01-01", "someday"]

    def test_empty(self):
        ts = time_series(txs_to_df([]))
        assert ts.empty
        assert list(ts.columns) == ["date", "income", "expense"]


class TestOptionsAndSummary:
    def test_options_come_from_unfiltered_history(self, sample):
        opts = filter_options(sample)
        assert opts.expense == ["Labor", "Lumber"]
        assert opts.income == ["Deposit", "Final Payment"]

    def test_summary_uses_filter(self, sample):
        summary = summarize(sample, LedgerFilter(project="p1"))
        assert summary.totals.total_income == 50
        assert summary.totals.total_expense == 100
        assert summary.totals.balance == -50
        assert summary.expense_by_category == {"Lumber": 100.0}
        assert summary.income_by_category == {"Deposit": 50.0}
        assert summary.options.expense == ["Labor", "Lumber"]

    def test_summary_defaults_to_all(self, sample):
        summary = summarize(sample)
        assert summary.totals.total_income == 550
        assert len(summary.time_series) == 3
        assert LedgerFilter().project == ALL
