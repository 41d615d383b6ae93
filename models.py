# models.py

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Dict, Any, List
import time
import uuid


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


def new_transaction_id() -> str:
    return str(uuid.uuid4())


def new_project_id() -> str:
    # time component keeps ids roughly sortable, the random part keeps two
    # ids minted in the same millisecond apart
    return f"p_{int(time.time() * 1000):x}_{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"id": self.id, "name": self.name}
        if self.description:
            d["description"] = self.description
        return d

    @staticmethod
    def from_dict(d):
        return Project(
            id=str(d["id"]),
            name=str(d["name"]),
            description=d.get("description"),
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    amount: float
    type: TransactionType
    category: str
    project_id: str
    description: str = ""

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": float(self.amount),
            "type": self.type.value,
            "category": self.category,
            "projectId": self.project_id,
        }

    @staticmethod
    def from_dict(d):
        return Transaction(
            id=str(d["id"]),
            date=str(d["date"]),
            description=d.get("description") or "",
            amount=abs(float(d["amount"])),
            type=TransactionType(d["type"]),
            category=str(d["category"]),
            project_id=str(d["projectId"]),
        )


@dataclass(frozen=True)
class TransactionDraft:
    """A transaction's fields before an id is assigned."""
    date: str
    amount: float
    type: TransactionType
    category: str
    project_id: str
    description: str = ""

    def to_transaction(self, tx_id: str) -> Transaction:
        return Transaction(
            id=tx_id,
            date=self.date,
            description=self.description,
            amount=abs(float(self.amount)),
            type=self.type,
            category=self.category,
            project_id=self.project_id,
        )


@dataclass
class LedgerDocument:
    """
    The unit that gets persisted, exported and imported.

    Category lists are None when the source carried no registry at all,
    which is different from carrying an empty one.
    """
    transactions: List[Transaction] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    expense_categories: Optional[List[str]] = None
    income_categories: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "transactions": [t.to_dict() for t in self.transactions],
            "projects": [p.to_dict() for p in self.projects],
        }
        if self.expense_categories is not None:
            d["expenseCategories"] = list(self.expense_categories)
        if self.income_categories is not None:
            d["incomeCategories"] = list(self.income_categories)
        return d

    @staticmethod
    def from_dict(d):
        expense = d.get("expenseCategories")
        income = d.get("incomeCategories")
        return LedgerDocument(
            transactions=[Transaction.from_dict(t) for t in d.get("transactions") or []],
            projects=[Project.from_dict(p) for p in d.get("projects") or []],
            expense_categories=[str(c) for c in expense] if expense is not None else None,
            income_categories=[str(c) for c in income] if income is not None else None,
        )

    def with_defaults(self) -> "LedgerDocument":
        """Fill empty or missing collections with the built-in defaults."""
        return replace(
            self,
            transactions=list(self.transactions),
            projects=list(self.projects) or list(DEFAULT_PROJECTS),
            expense_categories=list(self.expense_categories or DEFAULT_EXPENSE_CATEGORIES),
            income_categories=list(self.income_categories or DEFAULT_INCOME_CATEGORIES),
        )


DEFAULT_PROJECTS = (
    Project(id="gen", name="General / Office"),
    Project(id="p1", name="Model House 45m2"),
    Project(id="p2", name="Alpine Cabin"),
)

DEFAULT_EXPENSE_CATEGORIES = (
    "Structural Lumber",
    "Sheathing (OSB/Plywood)",
    "Insulation (Wool/EPS)",
    "Exterior Cladding",
    "Interior Lining",
    "Roofing/Flashing",
    "Foundations/Base",
    "Openings (Doors/Windows)",
    "Electrical Installation",
    "Plumbing Installation",
    "Labor",
    "Tools",
    "Freight/Transport",
    "Permits/Taxes",
    "Marketing/Advertising",
    "Other",
)

DEFAULT_INCOME_CATEGORIES = (
    "Client Deposit",
    "Progress Payment",
    "Final Payment",
    "Surplus Sales",
    "External Investment",
    "Other",
)
