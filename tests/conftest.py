import pytest

from ledger import Ledger
from models import TransactionDraft, TransactionType
from storage import MemoryKeyValueStore, PersistenceBridge


@pytest.fixture
def make_draft():
    def _make(date="2024-01-01", amount=100.0, tx_type=TransactionType.EXPENSE,
              category="Labor", project_id="p1", description=""):
        return TransactionDraft(
            date=date,
            amount=amount,
            type=tx_type,
            category=category,
            project_id=project_id,
            description=description,
        )
    return _make


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def bridge(store):
    return PersistenceBridge(store)


@pytest.fixture
def ledger(bridge):
    return Ledger.load(bridge)
