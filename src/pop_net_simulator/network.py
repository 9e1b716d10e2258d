"""
Structural network interface and an in-memory edge-list implementation.

The formation/dissolution engine that decides which edges exist is external
to this package. Everything here only needs the small surface described by
``StructuralNetwork``: per-member attribute vectors, the current edge list,
and a timed edge list with censoring flags. ``EdgeListNetwork`` implements
that surface for drivers and tests that do not bring their own network.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import numpy as np
import pandas as pd

from .attributes import NETWORK_RESERVED
from .utils.logging import log_call

logger = logging.getLogger(__name__)

# Attributes that can never be referenced by a formation formula
FORMULA_EXCLUDED = frozenset({"active", "vertex_names", "na"})

TIMED_EDGELIST_COLUMNS = [
    "onset", "terminus", "tail", "head",
    "onset_censored", "terminus_censored", "duration",
]


class StructuralNetwork(Protocol):
    """Minimal interface of a network consumed by the simulator."""

    @property
    def size(self) -> int:
        ...

    def vertex_attribute_names(self) -> List[str]:
        ...

    def get_vertex_attribute(self, name: str) -> np.ndarray:
        ...

    def set_vertex_attribute(self, name: str, values: Any) -> None:
        ...

    def edgelist(self) -> np.ndarray:
        ...

    def timed_edgelist(self, start: Optional[int] = None,
                       end: Optional[int] = None) -> pd.DataFrame:
        ...

    def add_vertices(self, n: int) -> np.ndarray:
        ...

    def delete_vertices(self, ids: Sequence[int], at: int) -> None:
        ...


@dataclass
class _Spell:
    tail: int
    head: int
    onset: int
    terminus: Optional[int] = None


class EdgeListNetwork:
    """
    In-memory undirected network with timed edges.

    Vertices are addressed by 1-based position. Each vertex also carries a
    persistent ``pid`` that survives deletions of other vertices; edge
    history is kept against pids.

    Parameters
    ----------
    n : int
        Initial number of vertices

    Examples
    --------
    >>> nw = EdgeListNetwork(5)
    >>> nw.add_edge(1, 2, onset=1)
    >>> nw.edgelist().tolist()
    [[1, 2]]
    """

    def __init__(self, n: int):
        self._attrs: Dict[str, np.ndarray] = {"pid": np.arange(1, n + 1)}
        self._next_pid = n + 1
        self._spells: List[_Spell] = []
        self._last_time = 0

    @property
    def size(self) -> int:
        return len(self._attrs["pid"])

    def vertex_attribute_names(self) -> List[str]:
        return list(self._attrs)

    def get_vertex_attribute(self, name: str) -> np.ndarray:
        return self._attrs[name].copy()

    def set_vertex_attribute(self, name: str, values: Any) -> None:
        """Set an attribute for all vertices; scalars are broadcast."""
        if np.ndim(values) == 0:
            values = np.full(self.size, values, dtype=object
                             if isinstance(values, str) else None)
        arr = np.asarray(values)
        if arr.dtype.kind in "US":
            arr = arr.astype(object)
        if len(arr) != self.size:
            raise ValueError(
                f"Attribute {name!r} has {len(arr)} values for a network "
                f"of size {self.size}"
            )
        self._attrs[name] = arr.copy()

    def add_vertices(self, n: int) -> np.ndarray:
        """Append ``n`` vertices with missing attribute values."""
        start = self.size
        for name, values in self._attrs.items():
            if name == "pid":
                new = np.arange(self._next_pid, self._next_pid + n)
            elif values.dtype.kind in "iufb":
                values = values.astype(float)
                new = np.full(n, np.nan)
            else:
                new = np.full(n, None, dtype=object)
            self._attrs[name] = np.concatenate([values, new])
        self._next_pid += n
        return np.arange(start + 1, start + n + 1)

    def delete_vertices(self, ids: Sequence[int], at: int) -> None:
        """Remove vertices, ending their open edges at time ``at``."""
        rows = np.asarray(ids, dtype=int) - 1
        if rows.size == 0:
            return
        gone = set(self._attrs["pid"][rows].tolist())
        for spell in self._spells:
            if spell.terminus is None and (spell.tail in gone
                                           or spell.head in gone):
                spell.terminus = at
        self._last_time = max(self._last_time, at)
        for name in self._attrs:
            self._attrs[name] = np.delete(self._attrs[name], rows)

    def add_edge(self, tail: int, head: int, onset: int) -> None:
        """Form an edge between two vertices at time ``onset``."""
        pid = self._attrs["pid"]
        a, b = sorted((int(pid[tail - 1]), int(pid[head - 1])))
        self._spells.append(_Spell(tail=a, head=b, onset=onset))
        self._last_time = max(self._last_time, onset)

    def dissolve_edge(self, tail: int, head: int, at: int) -> None:
        """End the open edge between two vertices at time ``at``."""
        pid = self._attrs["pid"]
        a, b = sorted((int(pid[tail - 1]), int(pid[head - 1])))
        for spell in self._spells:
            if spell.terminus is None and (spell.tail, spell.head) == (a, b):
                spell.terminus = at
                self._last_time = max(self._last_time, at)
                return
        raise KeyError(f"No open edge between {tail} and {head}")

    def edgelist(self) -> np.ndarray:
        """Open edges as a ``(m, 2)`` array of 1-based vertex positions."""
        position = {p: i + 1 for i, p in enumerate(self._attrs["pid"])}
        rows = [
            (position[s.tail], position[s.head])
            for s in self._spells if s.terminus is None
        ]
        if not rows:
            return np.empty((0, 2), dtype=int)
        return np.array(sorted(tuple(sorted(r)) for r in rows), dtype=int)

    def timed_edgelist(self, start: Optional[int] = None,
                       end: Optional[int] = None) -> pd.DataFrame:
        """
        Edge spells observed within ``[start, end]``.

        Onsets before ``start`` are moved to ``start`` and flagged as
        onset-censored; open edges and termini after ``end`` are set to
        ``end`` and flagged as terminus-censored. Dissolved edges within the
        window are included.

        ``tail`` and ``head`` are current 1-based vertex positions, as in
        ``edgelist``; an endpoint that has since been deleted is missing
        (``<NA>``).
        """
        position = {p: i + 1 for i, p in enumerate(self._attrs["pid"])}
        if start is None:
            start = min((s.onset for s in self._spells), default=1)
        if end is None:
            end = self._last_time
        rows = []
        for s in self._spells:
            if s.onset > end:
                continue
            if s.terminus is not None and s.terminus < start:
                continue
            open_ended = s.terminus is None or s.terminus > end
            onset = max(s.onset, start)
            terminus = end if open_ended else s.terminus
            rows.append((onset, terminus, position.get(s.tail),
                         position.get(s.head),
                         s.onset < start, open_ended, terminus - onset))
        el = pd.DataFrame(rows, columns=TIMED_EDGELIST_COLUMNS)
        el = el.astype({"tail": "Int64", "head": "Int64",
                        "onset_censored": bool, "terminus_censored": bool})
        el.attrs["n"] = self.size
        return el


@log_call
def get_formula_term_attr(form: str, nw: StructuralNetwork
                          ) -> Optional[List[str]]:
    """
    Vertex attributes referenced by a model formula.

    Parameters
    ----------
    form : str
        Formation formula, e.g. ``'~edges + nodematch("race")'``
    nw : StructuralNetwork
        Network whose vertex attributes are searched for in the formula

    Returns
    -------
    attrs : list of str or None
        Attribute names appearing in the formula, in network order, or None
        if there are none
    """
    out = []
    for name in nw.vertex_attribute_names():
        if name in FORMULA_EXCLUDED:
            continue
        pattern = r"(?<![\w.])" + re.escape(name) + r"(?![\w.])"
        if re.search(pattern, form):
            out.append(name)
    return out or None


@log_call
def get_network_term_attr(nw: StructuralNetwork) -> Optional[List[str]]:
    """All non-reserved vertex attribute names, or None if there are none."""
    out = [name for name in nw.vertex_attribute_names()
           if name not in NETWORK_RESERVED]
    return out or None


@log_call
def idgroup(nw: StructuralNetwork,
            ids: Optional[Sequence[int]] = None) -> np.ndarray:
    """
    Group number of the given members of a (possibly two-group) network.

    Parameters
    ----------
    nw : StructuralNetwork
        Network to query
    ids : sequence of int, optional
        1-based member identities; defaults to all members

    Returns
    -------
    groups : np.ndarray
        Group of each requested member; all 1 when the network has no
        ``group`` attribute

    Raises
    ------
    ValueError
        If an id exceeds the network size
    """
    n = nw.size
    if ids is None:
        ids = np.arange(1, n + 1)
    ids = np.asarray(ids, dtype=int)
    if np.any(ids > n) or np.any(ids < 1):
        raise ValueError(f"Specify ids between 1 and {n}")
    if "group" not in nw.vertex_attribute_names():
        return np.ones(len(ids), dtype=int)
    return nw.get_vertex_attribute("group")[ids - 1]
