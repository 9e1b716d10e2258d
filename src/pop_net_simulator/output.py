"""
Simulation output container and time-series truncation.
"""

from dataclasses import dataclass, field, replace
from typing import Dict

import pandas as pd

from .utils.logging import log_call


@dataclass
class OutputControl:
    """Time settings of a finished simulation."""

    nsteps: int
    start: int = 1
    nsims: int = 1


@dataclass
class SimulationOutput:
    """
    Epidemic time series of a multi-replicate simulation.

    Attributes
    ----------
    epi : dict of str to pd.DataFrame
        One frame per summary statistic, indexed by time step (1-based),
        one column per replicate
    control : OutputControl
        Time settings of the run
    """

    epi: Dict[str, pd.DataFrame]
    control: OutputControl
    network_stats: Dict[str, pd.DataFrame] = field(default_factory=dict)


@log_call
def truncate_sim(x: SimulationOutput, at: int) -> SimulationOutput:
    """
    Left-truncate a simulation's time series at step ``at``.

    Used after a burn-in period when only steps ``at`` to ``nsteps`` are of
    interest. The kept steps are relabelled from 1.

    Parameters
    ----------
    x : SimulationOutput
        Simulation output to truncate; it is not modified
    at : int
        First step to keep

    Returns
    -------
    truncated : SimulationOutput
        Output with steps ``at..nsteps`` relabelled ``1..nsteps - at + 1``

    Raises
    ------
    TypeError
        If ``x`` is not a SimulationOutput
    ValueError
        If ``at`` lies outside ``[1, nsteps]``
    """
    if not isinstance(x, SimulationOutput):
        raise TypeError("x must be a SimulationOutput")
    nsteps = x.control.nsteps
    if not 1 <= at <= nsteps:
        raise ValueError(f"at must be between 1 and {nsteps}, got {at}")

    def _cut(frame: pd.DataFrame) -> pd.DataFrame:
        kept = frame.loc[at:nsteps].copy()
        kept.index = pd.RangeIndex(1, len(kept) + 1, name=frame.index.name)
        return kept

    return replace(
        x,
        epi={name: _cut(frame) for name, frame in x.epi.items()},
        network_stats={name: _cut(frame)
                       for name, frame in x.network_stats.items()},
        control=replace(x.control, start=1, nsteps=nsteps - at + 1),
    )
