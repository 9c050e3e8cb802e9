"""
Dataset Persistence.

The application keeps the last successfully parsed dataset between sessions
under one fixed key. The pipeline itself never touches storage: a DatasetStore
is handed to the application, which calls load() at startup, save() after a
successful upload and clear() on request.

Backends:
- JsonFileStore: '<directory>/<key>.json' (or '.json.gz' when compressed).
- InMemoryStore: process-local, used in tests.
"""
import gzip
import json
import os
from abc import ABC, abstractmethod
from typing import Optional

from .config import STORAGE_KEY
from .errors import StorageError
from .models import ParsedDataset, dataset_from_dict, dataset_to_dict


class DatasetStore(ABC):
    """Key-value persistence for a single ParsedDataset."""

    @abstractmethod
    def load(self) -> Optional[ParsedDataset]:
        """Returns the stored dataset, or None if nothing is stored."""

    @abstractmethod
    def save(self, dataset: ParsedDataset) -> None:
        """Replaces the stored dataset."""

    @abstractmethod
    def clear(self) -> None:
        """Removes the stored dataset (no-op if nothing is stored)."""


class InMemoryStore(DatasetStore):
    """Keeps the serialized dataset in a dictionary."""

    def __init__(self, key: str = STORAGE_KEY) -> None:
        self.key = key
        self._items: dict[str, str] = {}

    def load(self) -> Optional[ParsedDataset]:
        blob = self._items.get(self.key)
        if blob is None:
            return None
        return dataset_from_dict(json.loads(blob))

    def save(self, dataset: ParsedDataset) -> None:
        # Stored as JSON text so in-memory and file backends behave identically
        self._items[self.key] = json.dumps(dataset_to_dict(dataset))

    def clear(self) -> None:
        self._items.pop(self.key, None)


class JsonFileStore(DatasetStore):
    """
    Stores the dataset as a JSON document on disk.

    The file is written to a temporary name first and then moved into place, so
    an interrupted save never leaves a half-written dataset behind.
    """

    def __init__(self, directory: str, key: str = STORAGE_KEY, compress: bool = False) -> None:
        self.directory = directory
        self.key = key
        self.compress = compress

    @property
    def path(self) -> str:
        suffix = '.json.gz' if self.compress else '.json'
        return os.path.join(self.directory, f"{self.key}{suffix}")

    def _open(self, path: str, mode: str):
        opener = gzip.open if self.compress else open
        return opener(path, mode, encoding='utf-8')

    def load(self) -> Optional[ParsedDataset]:
        if not os.path.exists(self.path):
            return None

        try:
            with self._open(self.path, 'rt') as f:
                payload = json.load(f)
            return dataset_from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Stored dataset at '{self.path}' is unreadable: {e}") from e

    def save(self, dataset: ParsedDataset) -> None:
        # Create storage directory to prevent IOError on save.
        os.makedirs(self.directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"

        try:
            with self._open(tmp_path, 'wt') as f:
                json.dump(dataset_to_dict(dataset), f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Could not save dataset to '{self.path}': {e}") from e

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Could not remove stored dataset '{self.path}': {e}") from e
