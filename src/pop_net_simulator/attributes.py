"""
Member attribute storage for network simulations.

The attribute table holds one array per attribute with one value per member
currently in the population. Member identities are 1-based: member ``k`` is
row ``k - 1`` of every array.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import numpy as np
import pandas as pd

from .exceptions import ReservedAttributeError
from .utils.logging import log_call

logger = logging.getLogger(__name__)

# Network-internal bookkeeping, never copied into the attribute table
NETWORK_RESERVED = frozenset(
    {"na", "vertex_names", "active", "status_active", "pid"}
)
# Lifecycle fields maintained by the simulation itself
LIFECYCLE_FIELDS = frozenset({"active", "entry_time", "exit_time", "inf_time"})
# Fields never profiled for entrant sampling; status and group have their
# own entry logic
PROFILE_EXCLUDED = frozenset(
    {"na", "vertex_names", "group", "status"} | LIFECYCLE_FIELDS
)


class AttributeKind(str, Enum):
    """Value type of an attribute, fixed when it is first registered."""

    CATEGORICAL = "categorical"
    NUMERIC = "numeric"


def _infer_kind(values: np.ndarray) -> AttributeKind:
    if values.dtype.kind in "biuf":
        return AttributeKind.NUMERIC
    return AttributeKind.CATEGORICAL


def _coerce(values: Any, kind: AttributeKind) -> np.ndarray:
    if kind is AttributeKind.CATEGORICAL:
        return np.array(values, dtype=object).reshape(-1)
    arr = np.array(values).reshape(-1)
    if arr.dtype.kind == "b":
        return arr.astype(int)
    if arr.dtype.kind not in "iuf":
        return arr.astype(float)
    return arr


class AttributeTable:
    """
    Authoritative per-member attribute table.

    Parameters
    ----------
    columns : mapping of str to array-like
        Initial attributes. Must contain ``active``.
    kinds : mapping of str to AttributeKind, optional
        Explicit kinds; attributes without one are typed from their values

    Attributes
    ----------
    kinds : dict
        Kind of every registered attribute

    Raises
    ------
    ReservedAttributeError
        If ``active`` is missing or a lifecycle field is categorical
    """

    def __init__(
        self,
        columns: Mapping[str, Any],
        kinds: Optional[Mapping[str, AttributeKind]] = None
    ):
        self._data: Dict[str, np.ndarray] = {}
        self.kinds: Dict[str, AttributeKind] = {}
        kinds = kinds or {}
        for name, values in columns.items():
            self.register(name, values, kinds.get(name))
        if "active" not in self._data:
            raise ReservedAttributeError(
                "AttributeTable requires an 'active' attribute"
            )

    @classmethod
    def initialize(cls, n: int, at: int = 1) -> "AttributeTable":
        """Create a table of ``n`` active members who entered at ``at``."""
        return cls({
            "active": np.ones(n, dtype=int),
            "entry_time": np.full(n, at, dtype=int),
            "exit_time": np.full(n, np.nan),
        })

    def register(self, name: str, values: Any,
                 kind: Optional[AttributeKind] = None) -> None:
        """
        Store ``values`` under ``name``.

        The kind of an attribute is decided the first time it is
        registered. Later registrations keep that kind and coerce the new
        values to it.
        """
        if name in self.kinds:
            kind = self.kinds[name]
        elif kind is None:
            kind = _infer_kind(np.asarray(values))
        if name in LIFECYCLE_FIELDS and kind is not AttributeKind.NUMERIC:
            raise ReservedAttributeError(
                f"Lifecycle field {name!r} must be numeric"
            )
        self.kinds[name] = kind
        self._data[name] = _coerce(values, kind)

    def append(self, name: str, values: Any) -> None:
        """Append ``values`` to an existing attribute."""
        new = _coerce(values, self.kinds[name])
        self._data[name] = np.concatenate([self._data[name], new])

    def append_members(self, n: int, at: int) -> np.ndarray:
        """
        Add ``n`` active members entering at time ``at``.

        Only the lifecycle fields are extended; every other attribute is
        left short until entrant attributes are assigned.

        Returns
        -------
        new_ids : np.ndarray
            1-based identities of the new members, ascending
        """
        start = self.n_members
        self.append("active", np.ones(n, dtype=int))
        for name, fill in (("entry_time", at), ("exit_time", np.nan)):
            if name in self._data:
                self.append(name, np.full(n, fill))
        return np.arange(start + 1, start + n + 1)

    def remove_members(self, ids: Iterable[int]) -> None:
        """Drop the rows of the given 1-based member identities."""
        rows = np.asarray(list(ids), dtype=int) - 1
        if rows.size == 0:
            return
        n = self.n_members
        for name, values in self._data.items():
            if len(values) == n:
                self._data[name] = np.delete(values, rows)
            else:
                logger.warning(
                    "Attribute %s has %d values for %d members; rows not "
                    "removed", name, len(values), n
                )

    @property
    def n_members(self) -> int:
        return len(self._data["active"])

    def tracked_names(self, exclude: Iterable[str] = PROFILE_EXCLUDED
                      ) -> List[str]:
        excluded = set(exclude)
        return [name for name in self._data if name not in excluded]

    def to_frame(self) -> pd.DataFrame:
        """Return the table as a DataFrame indexed by member identity."""
        frame = pd.DataFrame(self._data)
        frame.index = pd.RangeIndex(1, self.n_members + 1, name="id")
        return frame

    def __getitem__(self, name: str) -> np.ndarray:
        return self._data[name]

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return (f"AttributeTable(n_members={self.n_members}, "
                f"attributes={list(self._data)})")


@log_call
def get_attr_prop(
    table: AttributeTable,
    nwterms: Optional[Iterable[str]],
    exclude: Iterable[str] = PROFILE_EXCLUDED
) -> Dict[str, pd.Series]:
    """
    Proportional distribution of each profiled attribute.

    Parameters
    ----------
    table : AttributeTable
        Current attribute table
    nwterms : iterable of str, optional
        Attributes referenced by the network model terms. When None there is
        no structural attribute to keep consistent and nothing is profiled.
    exclude : iterable of str, default=PROFILE_EXCLUDED
        Attribute names never profiled

    Returns
    -------
    proportions : dict of str to pd.Series
        For each attribute, the share of members holding each observed
        value, indexed by value in sorted order. Missing values are ignored.

    Examples
    --------
    >>> table = AttributeTable({"active": [1, 1, 1, 1],
    ...                         "race": ["B", "W", "W", "W"]})
    >>> get_attr_prop(table, ["race"])["race"].to_dict()
    {'B': 0.25, 'W': 0.75}
    """
    if nwterms is None:
        return {}
    out: Dict[str, pd.Series] = {}
    for name in table.tracked_names(exclude):
        counts = pd.Series(table[name], name=name).value_counts(
            normalize=True, dropna=True
        )
        out[name] = counts.sort_index()
    return out
