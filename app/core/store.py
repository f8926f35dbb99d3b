from __future__ import annotations

import time
from typing import Iterable, Optional, Tuple

from .records import NDFRecord


class RecordStore:
    """Current record collection of the session.

    ``replace`` publishes a new tuple in a single assignment, so a reader
    holding ``records`` sees either the old or the new collection.
    """

    def __init__(self) -> None:
        self._records: Tuple[NDFRecord, ...] = ()
        self._source: Optional[str] = None
        self._loaded_at: Optional[float] = None
        self.show_filters: bool = True

    @property
    def records(self) -> Tuple[NDFRecord, ...]:
        return self._records

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def loaded_at(self) -> Optional[float]:
        return self._loaded_at

    def replace(self, records: Iterable[NDFRecord], source: Optional[str] = None) -> None:
        self._records = tuple(records)
        self._source = source
        self._loaded_at = time.time()

    def clear(self) -> None:
        self._records = ()
        self._source = None
        self._loaded_at = None

    def toggle_filters(self) -> bool:
        self.show_filters = not self.show_filters
        return self.show_filters

    def __len__(self) -> int:
        return len(self._records)
