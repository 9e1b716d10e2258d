"""
Diagnostics for network model specifications and simulated edge lists.

These functions are read-only: they summarize target statistics and timed
edge lists for the operator and never modify simulation state.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import pandas as pd

from .utils.logging import log_call

DIST_TOLERANCE = 0.001


@dataclass
class DegreeBalance:
    """
    Result of a two-group degree distribution check.

    Attributes
    ----------
    table : pd.DataFrame
        Fractional distribution and implied node counts by degree for each
        group, with an ``Edges`` row holding the distribution totals and
        implied edge counts
    edges_g1, edges_g2 : float
        Edges implied by each group's degree distribution
    dist_ok_g1, dist_ok_g2 : bool
        Whether each distribution sums to one within ``DIST_TOLERANCE``
    messages : list of str
        Problems found, or the balanced notice
    """

    table: pd.DataFrame
    edges_g1: float
    edges_g2: float
    dist_ok_g1: bool
    dist_ok_g2: bool
    messages: List[str] = field(default_factory=list)

    @property
    def rel_diff(self) -> float:
        """Edge difference relative to group 2's implied edges."""
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.divide(self.edges_g1 - self.edges_g2,
                                   self.edges_g2))

    @property
    def edges_balanced(self) -> bool:
        """Whether the implied edge counts differ by at most one."""
        return abs(self.edges_g1 - self.edges_g2) <= 1

    @property
    def balanced(self) -> bool:
        """Whether both distributions sum to one and edges balance."""
        return self.dist_ok_g1 and self.dist_ok_g2 and self.edges_balanced

    def report(self) -> str:
        """
        Text report of the check.

        Returns
        -------
        report : str
            Title, the balance table and one line per message
        """
        rule = "=" * 45
        lines = ["Degree Distribution Check", rule,
                 self.table.to_string(), rule]
        lines.extend(self.messages)
        return "\n".join(lines)


def _dist_ok(dist: np.ndarray) -> bool:
    total = dist.sum()
    return 1 - DIST_TOLERANCE < total < 1 + DIST_TOLERANCE


@log_call
def check_degdist_bal(
    num_g1: int,
    num_g2: int,
    deg_dist_g1: Sequence[float],
    deg_dist_g2: Sequence[float],
    verbose: bool = True
) -> DegreeBalance:
    """
    Check a two-group degree distribution for balance in implied edges.

    In a two-group (bipartite) network every edge has one end in each
    group, so the number of edges implied by group 1's degree distribution
    must equal the number implied by group 2's.

    Parameters
    ----------
    num_g1, num_g2 : int
        Number of members in group 1 and group 2
    deg_dist_g1, deg_dist_g2 : sequence of float
        Fraction of each group with degree 0, 1, ..., g
    verbose : bool, default=True
        Print the report

    Returns
    -------
    result : DegreeBalance
        Table, implied edge counts and the check outcome

    Examples
    --------
    >>> res = check_degdist_bal(500, 500, [0.40, 0.55, 0.04, 0.01],
    ...                         [0.48, 0.41, 0.08, 0.03], verbose=False)
    >>> res.balanced
    True
    """
    dist_g1 = np.asarray(deg_dist_g1, dtype=float)
    dist_g2 = np.asarray(deg_dist_g2, dtype=float)
    width = max(len(dist_g1), len(dist_g2))
    dist_g1 = np.pad(dist_g1, (0, width - len(dist_g1)))
    dist_g2 = np.pad(dist_g2, (0, width - len(dist_g2)))

    degrees = np.arange(width)
    counts_g1 = dist_g1 * num_g1
    counts_g2 = dist_g2 * num_g2
    edges_g1 = float(np.sum(counts_g1 * degrees))
    edges_g2 = float(np.sum(counts_g2 * degrees))

    table = pd.DataFrame(
        {"g1.dist": dist_g1, "g1.cnt": counts_g1,
         "g2.dist": dist_g2, "g2.cnt": counts_g2},
        index=[f"Deg{k}" for k in degrees],
    )
    table.loc["Edges"] = [dist_g1.sum(), edges_g1, dist_g2.sum(), edges_g2]

    result = DegreeBalance(
        table=table, edges_g1=edges_g1, edges_g2=edges_g2,
        dist_ok_g1=_dist_ok(dist_g1), dist_ok_g2=_dist_ok(dist_g2),
    )
    if not result.dist_ok_g1:
        result.messages.append("** deg_dist_g1 TOTAL != 1")
    if not result.dist_ok_g2:
        result.messages.append("** deg_dist_g2 TOTAL != 1")
    if not result.edges_balanced:
        if edges_g1 > edges_g2:
            msg = "Group 1 Edges > Group 2 Edges:"
        else:
            msg = "Group 1 Edges < Group 2 Edges:"
        result.messages.append(f"** {msg} {result.rel_diff:.3f} Rel Diff")
    if result.balanced:
        result.messages.append("** Edges balanced **")

    if verbose:
        print(result.report())
    return result


@log_call
def edgelist_censor(el: pd.DataFrame) -> pd.DataFrame:
    """
    Number and share of censored edges in a timed edge list.

    Left-censored edges started before the observation window,
    right-censored edges continue past it. Edges censored at both ends are
    counted in the left, right and both rows.

    Parameters
    ----------
    el : pd.DataFrame
        Timed edge list with boolean ``onset_censored`` and
        ``terminus_censored`` columns

    Returns
    -------
    table : pd.DataFrame
        Rows ``Left Cens.``, ``Right Cens.``, ``Both Cens.``, ``No Cens.``;
        columns ``num`` and ``pct`` (share of all edges, NaN when the edge
        list is empty)
    """
    left = el["onset_censored"].to_numpy(dtype=bool)
    right = el["terminus_censored"].to_numpy(dtype=bool)
    nums = np.array([
        left.sum(),
        right.sum(),
        (left & right).sum(),
        (~left & ~right).sum(),
    ])
    n_edges = len(el)
    pcts = nums / n_edges if n_edges else np.full(len(nums), np.nan)
    return pd.DataFrame(
        {"num": nums, "pct": pcts},
        index=["Left Cens.", "Right Cens.", "Both Cens.", "No Cens."],
    )


@log_call
def edgelist_meanage(el: pd.DataFrame) -> pd.Series:
    """
    Mean age of active partnerships at each time step.

    An edge is active at ``t`` when ``onset <= t < terminus``, or when it
    lasts a single instant with ``onset == terminus == t``. Its age at
    ``t`` is ``t - onset + 1``.

    Parameters
    ----------
    el : pd.DataFrame
        Timed edge list with resolved ``onset`` and ``terminus`` columns

    Returns
    -------
    mean_age : pd.Series
        Mean partnership age indexed by time over
        ``[min(onset), max(terminus))``; NaN where no edge is active. The
        final instant ``max(terminus)`` is dropped because no edge is
        active on the open end of its interval.

    Raises
    ------
    ValueError
        If a terminus is missing or infinite
    """
    onset = el["onset"].to_numpy(dtype=float)
    terminus = el["terminus"].to_numpy(dtype=float)
    if len(onset) == 0:
        return pd.Series([], dtype=float, name="mean_age")
    if not np.all(np.isfinite(terminus)) or not np.all(np.isfinite(onset)):
        raise ValueError("edgelist_meanage needs resolved onset and terminus")

    times = np.arange(int(onset.min()), int(terminus.max()) + 1)
    mean_age = np.full(len(times), np.nan)
    for i, at in enumerate(times):
        active = ((onset <= at) & (terminus > at)) | \
            ((onset == at) & (terminus == at))
        if np.any(active):
            mean_age[i] = np.mean(at - onset[active] + 1)

    return pd.Series(mean_age[:-1], index=pd.Index(times[:-1], name="time"),
                     name="mean_age")
