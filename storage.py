# storage.py
import json
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

import structlog
from filelock import FileLock

from errors import PersistenceReadError
from models import LedgerDocument

STORAGE_KEY = "woodframe_books_data_v1"

log = structlog.get_logger(__name__)


class KeyValueStore(ABC):
    """Opaque string slots addressed by key."""

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """
        Return the stored text, or None when nothing is stored under key.
        Raises PersistenceReadError when the slot exists but cannot be read.
        """
        pass

    @abstractmethod
    def save(self, key: str, text: str) -> None:
        pass


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._slots = dict(initial or {})

    def load(self, key):
        return self._slots.get(key)

    def save(self, key, text):
        self._slots[key] = text


class FileKeyValueStore(KeyValueStore):
    """
    One `<key>.json` file per slot inside `directory`.
    Writes go through a file lock so two processes never interleave.
    """

    def __init__(self, directory: str, timeout: float = 5):
        self.directory = str(directory)
        self.timeout = timeout

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def load(self, key):
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Stored ledger is not readable: {e}") from e

    def save(self, key, text):
        os.makedirs(self.directory, exist_ok=True)
        path = self.path_for(key)
        lock = FileLock(path + ".lock", timeout=self.timeout)
        with lock:
            tmp_path = path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, path)


def parse_document(text: str) -> LedgerDocument:
    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return LedgerDocument.from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise PersistenceReadError(f"Stored ledger is not readable: {e}") from e


def dump_document(document: LedgerDocument) -> str:
    return json.dumps(document.to_dict(), ensure_ascii=False)


class PersistenceBridge:
    """
    Mirrors the ledger document into a single key-value slot.

    A missing slot and an unreadable slot both come back as None; the
    caller then applies the built-in defaults.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load_document(self, key: str = STORAGE_KEY) -> Optional[LedgerDocument]:
        try:
            text = self.store.load(key)
            if text is None:
                log.info("persisted_document_missing", key=key)
                return None
            document = parse_document(text)
        except PersistenceReadError as e:
            log.warning("persisted_document_unreadable", key=key, error=str(e))
            return None
        log.info(
            "persisted_document_loaded",
            key=key,
            transactions=len(document.transactions),
            projects=len(document.projects),
        )
        return document

    def save_document(self, document: LedgerDocument, key: str = STORAGE_KEY) -> None:
        self.store.save(key, dump_document(document))
        log.debug("persisted_document_saved", key=key, transactions=len(document.transactions))
