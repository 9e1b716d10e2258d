"""Fast degree queries from edge lists."""

from typing import Optional, Union

import numpy as np
import pandas as pd

from .exceptions import MissingSize
from .network import StructuralNetwork
from .utils.logging import log_call

Edgelist = Union[np.ndarray, pd.DataFrame]


@log_call
def get_degree(
    x: Union[StructuralNetwork, Edgelist],
    n: Optional[int] = None
) -> np.ndarray:
    """
    Current degree of every member.

    Parameters
    ----------
    x : StructuralNetwork, np.ndarray or pd.DataFrame
        A network, or an edge list of 1-based member identities with one
        row per edge. A DataFrame edge list is read from its ``tail`` and
        ``head`` columns when present and may carry the network size in
        ``x.attrs["n"]``. Every row is counted, so a timed edge list gives
        the degree over its observation window, dissolved edges included;
        missing endpoints are skipped.
    n : int, optional
        Total number of members; taken from the network or the DataFrame
        attrs when not given

    Returns
    -------
    degree : np.ndarray
        Integer array of length ``n``; entry ``k - 1`` is the number of edge
        endpoints equal to member ``k``

    Raises
    ------
    MissingSize
        If ``n`` is not given and cannot be derived from ``x``

    Examples
    --------
    >>> get_degree(np.array([[1, 2], [1, 3], [2, 3]]), n=5).tolist()
    [2, 2, 2, 0, 0]
    """
    if hasattr(x, "edgelist") and hasattr(x, "size"):
        if n is None:
            n = x.size
        x = x.edgelist()
    elif isinstance(x, pd.DataFrame):
        if n is None:
            n = x.attrs.get("n")
        if {"tail", "head"}.issubset(x.columns):
            x = x[["tail", "head"]]
        else:
            x = x.iloc[:, :2]
        x = x.to_numpy(dtype=float, na_value=np.nan)
    if n is None:
        raise MissingSize("Edgelist is missing the network size n")

    ends = np.asarray(x, dtype=float).reshape(-1)
    ends = ends[np.isfinite(ends) & (ends >= 1) & (ends <= n)].astype(int)
    return np.bincount(ends - 1, minlength=n).astype(int)
