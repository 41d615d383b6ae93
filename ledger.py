# ledger.py
"""
In-memory ledger: transactions, projects and the two category registries.

The ledger is the only owner of these collections. Each mutation swaps in a
new list in one step and then writes the whole document through to the
persistence bridge, if one is attached. Mutations never fail; input checks
belong to the form layer (see forms.py).
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

import structlog

from codec import DEFAULT_LOCALE
from models import (
    LedgerDocument,
    Project,
    Transaction,
    TransactionDraft,
    TransactionType,
    new_project_id,
    new_transaction_id,
)
from storage import STORAGE_KEY, FileKeyValueStore, PersistenceBridge

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Totals:
    total_income: float
    total_expense: float
    balance: float


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    income = 0.0
    expense = 0.0
    for t in transactions:
        if t.type is TransactionType.INCOME:
            income += t.amount
        else:
            expense += t.amount
    return Totals(total_income=income, total_expense=expense, balance=income - expense)


class Ledger:
    def __init__(self, bridge: Optional[PersistenceBridge] = None, key: str = STORAGE_KEY):
        self._bridge = bridge
        self._key = key
        empty = LedgerDocument().with_defaults()
        self._transactions: List[Transaction] = empty.transactions
        self._projects: List[Project] = empty.projects
        self._expense_categories: List[str] = empty.expense_categories
        self._income_categories: List[str] = empty.income_categories

    @classmethod
    def load(cls, bridge: PersistenceBridge, key: str = STORAGE_KEY) -> "Ledger":
        """Build a ledger from the persisted slot, falling back to defaults."""
        ledger = cls(key=key)
        document = bridge.load_document(key)
        if document is not None:
            ledger._apply(document)
        # attach after loading so the initial state is not written straight back
        ledger._bridge = bridge
        return ledger

    # read side

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    @property
    def projects(self) -> List[Project]:
        return list(self._projects)

    @property
    def expense_categories(self) -> List[str]:
        return list(self._expense_categories)

    @property
    def income_categories(self) -> List[str]:
        return list(self._income_categories)

    def categories(self, tx_type: TransactionType) -> List[str]:
        if tx_type is TransactionType.INCOME:
            return self.income_categories
        return self.expense_categories

    def recent_transactions(self) -> List[Transaction]:
        return list(reversed(self._transactions))

    def find_transaction(self, tx_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == tx_id), None)

    def find_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def project_name(self, project_id: str, placeholder: str = DEFAULT_LOCALE.no_project) -> str:
        project = self.find_project(project_id)
        return project.name if project else placeholder

    def totals(self) -> Totals:
        return compute_totals(self._transactions)

    def to_document(self) -> LedgerDocument:
        return LedgerDocument(
            transactions=self.transactions,
            projects=self.projects,
            expense_categories=self.expense_categories,
            income_categories=self.income_categories,
        )

    # mutations

    def create_transaction(self, draft: TransactionDraft) -> Transaction:
        tx = draft.to_transaction(new_transaction_id())
        self._transactions = self._transactions + [tx]
        log.info("transaction_created", id=tx.id, type=tx.type.value, amount=tx.amount)
        self._changed()
        return tx

    def delete_transaction(self, tx_id: str) -> None:
        remaining = [t for t in self._transactions if t.id != tx_id]
        if len(remaining) == len(self._transactions):
            log.debug("transaction_delete_missing", id=tx_id)
            return
        self._transactions = remaining
        log.info("transaction_deleted", id=tx_id)
        self._changed()

    def create_project(self, name: str, description: Optional[str] = None) -> str:
        project = Project(id=new_project_id(), name=name, description=description)
        self._projects = self._projects + [project]
        log.info("project_created", id=project.id, name=name)
        self._changed()
        return project.id

    def delete_project(self, project_id: str) -> None:
        # transactions pointing at the project are left alone
        remaining = [p for p in self._projects if p.id != project_id]
        if len(remaining) == len(self._projects):
            log.debug("project_delete_missing", id=project_id)
            return
        self._projects = remaining
        orphaned = sum(1 for t in self._transactions if t.project_id == project_id)
        log.info("project_deleted", id=project_id, orphaned_transactions=orphaned)
        self._changed()

    def create_category(self, name: str, tx_type: TransactionType) -> None:
        if tx_type is TransactionType.INCOME:
            self._income_categories = self._income_categories + [name]
        else:
            self._expense_categories = self._expense_categories + [name]
        log.info("category_created", name=name, type=tx_type.value)
        self._changed()

    def delete_category(self, name: str, tx_type: TransactionType) -> None:
        if tx_type is TransactionType.INCOME:
            self._income_categories = [c for c in self._income_categories if c != name]
        else:
            self._expense_categories = [c for c in self._expense_categories if c != name]
        log.info("category_deleted", name=name, type=tx_type.value)
        self._changed()

    def replace_all(self, document: LedgerDocument) -> None:
        """Swap in a whole document; used for both startup load and import."""
        self._apply(document)
        log.info(
            "ledger_replaced",
            transactions=len(self._transactions),
            projects=len(self._projects),
        )
        self._changed()

    def _apply(self, document: LedgerDocument) -> None:
        filled = document.with_defaults()
        self._transactions = filled.transactions
        self._projects = filled.projects
        self._expense_categories = filled.expense_categories
        self._income_categories = filled.income_categories

    def _changed(self) -> None:
        if self._bridge is not None:
            self._bridge.save_document(self.to_document(), self._key)


def open_file_ledger(directory, key: str = STORAGE_KEY) -> Ledger:
    """Load the ledger persisted under `directory`, writing changes back there."""
    return Ledger.load(PersistenceBridge(FileKeyValueStore(directory)), key)
