"""Registrazione in memoria di (tempo, stato, derivata) per entità ed export (CSV, SQLite)."""

import sqlite3
from pathlib import Path
from typing import Any, Dict, Hashable, List, Optional, Union

import numpy as np

from statestep.core.collection import StateCollection
from statestep.core.state import as_array

KINDS = ("state", "dstate")

# One record: kind -> entity key -> flat array
Record = Dict[str, Dict[Hashable, np.ndarray]]


class StateHistory:
    """
    In-memory buffer of per-step records.

    Each record holds the time and, for every entity present at that step, its
    state and derivative as flat arrays. Series are aligned with times(): an
    entity missing from a record (added later, removed earlier, or recorded
    without derivatives) reads as a NaN row there. Entities are named by
    str(key) in exported columns.
    """

    def __init__(self, max_length: Optional[int] = None) -> None:
        """
        Args:
            max_length: maximum number of records kept (None = unlimited).
        """
        if max_length is not None and max_length <= 0:
            raise ValueError(f"max_length must be positive, got {max_length}")
        self._max_length = max_length
        self._time: List[float] = []
        self._records: List[Record] = []

    def record(
        self,
        time: float,
        state: StateCollection,
        dstate: Optional[StateCollection] = None,
    ) -> None:
        """Append one record."""
        entry: Record = {kind: {} for kind in KINDS}
        for kind, collection in (("state", state), ("dstate", dstate)):
            if collection is None:
                continue
            for key, value in collection.items():
                entry[kind][key] = as_array(value)
        self._time.append(float(time))
        self._records.append(entry)
        if self._max_length is not None and len(self._time) > self._max_length:
            self._time = self._time[-self._max_length:]
            self._records = self._records[-self._max_length:]

    def clear(self) -> None:
        self._time.clear()
        self._records.clear()

    def keys(self) -> List[Hashable]:
        """Recorded entity keys, sorted by name."""
        seen: Dict[Hashable, None] = {}
        for entry in self._records:
            for key in entry["state"]:
                seen.setdefault(key, None)
        return sorted(seen, key=str)

    def times(self) -> np.ndarray:
        return np.array(self._time)

    def get(self, key: Hashable, kind: str = "state") -> np.ndarray:
        """
        Series for one entity as an (n_records, n_components) array aligned
        with times(); rows where the entity was not recorded are NaN. Empty if
        the entity never appears.
        """
        if kind not in KINDS:
            raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")
        values = [entry[kind].get(key) for entry in self._records]
        width = next((v.size for v in values if v is not None), None)
        if width is None:
            return np.array([])
        out = np.full((len(values), width), np.nan)
        for i, value in enumerate(values):
            if value is not None:
                out[i] = value
        return out

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Flat column dict: 'time' plus '<name>_<kind>_<i>' columns."""
        columns: Dict[str, np.ndarray] = {"time": self.times()}
        for key in self.keys():
            for kind in KINDS:
                arr = self.get(key, kind)
                for i in range(arr.shape[1] if arr.ndim == 2 else 0):
                    columns[f"{key}_{kind}_{i}"] = arr[:, i]
        return columns

    def to_csv(self, path: Union[str, Path], delimiter: str = ",") -> None:
        """Export to CSV; one row per record."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        columns = self.to_dict()
        names = list(columns)
        rows = [delimiter.join(repr(float(columns[name][i])) for name in names) for i in range(len(self))]
        path.write_text(delimiter.join(names) + "\n" + "\n".join(rows), encoding="utf-8")

    def to_sqlite(self, path: Union[str, Path], table: str = "data") -> None:
        """
        Export to a SQLite table (REAL columns, one row per record).
        An existing table with the same name is replaced.
        """
        if not table.isidentifier():
            raise ValueError(f"invalid table name {table!r}")
        columns = self.to_dict()
        names = list(columns)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        quoted = ", ".join(_quote(name) for name in names)
        definition = ", ".join(f"{_quote(name)} REAL" for name in names)
        conn = sqlite3.connect(str(path))
        try:
            with conn:
                conn.execute(f'DROP TABLE IF EXISTS "{table}"')
                conn.execute(f'CREATE TABLE "{table}" ({definition})')
                placeholders = ", ".join("?" for _ in names)
                conn.executemany(
                    f'INSERT INTO "{table}" ({quoted}) VALUES ({placeholders})',
                    [
                        tuple(_sql_value(columns[name][i]) for name in names)
                        for i in range(len(self))
                    ],
                )
        finally:
            conn.close()

    def __len__(self) -> int:
        return len(self._time)


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _sql_value(value: Any) -> Optional[float]:
    value = float(value)
    return value if np.isfinite(value) else None
