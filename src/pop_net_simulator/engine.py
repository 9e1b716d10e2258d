"""
Step driver for attribute bookkeeping in an open population.

``AttributeEngine`` runs the per-step sequence that keeps the attribute table
and the network consistent while members enter and leave: departures are
removed, the current attribute distributions are profiled, entrants are
appended and given attributes, and the fields the formation/dissolution
engine needs are copied back onto the network.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from omegaconf import DictConfig

from .attributes import get_attr_prop
from .context import SimulationContext, replicate_seeds
from .entrants import auto_update_attr
from .network import StructuralNetwork, get_formula_term_attr
from .output import OutputControl, SimulationOutput
from .sync import copy_datattr_to_nwattr, copy_nwattr_to_datattr
from .utils.logging import log_call

logger = logging.getLogger(__name__)


@log_call
def check_attr_lengths(ctx: SimulationContext) -> None:
    """
    Raise if any attribute does not have one value per member.

    Raises
    ------
    ValueError
        Listing the attributes whose length differs from the member count
    """
    n = ctx.attr.n_members
    bad = {name: len(ctx.attr[name]) for name in ctx.attr
           if len(ctx.attr[name]) != n}
    if bad:
        raise ValueError(f"Attribute lengths {bad} differ from {n} members")


@dataclass
class AttributeEngine:
    """
    Drive attribute updates of one replicate.

    Parameters
    ----------
    ctx : SimulationContext
        Context of the replicate; mutated in place

    Attributes
    ----------
    history : list of dict
        Member counts recorded after each step
    """

    ctx: SimulationContext
    history: List[Dict[str, Any]] = field(default_factory=list)

    @log_call
    def initialize(self, formation: str, status: Any = "s") -> None:
        """
        Prepare the replicate before the first step.

        Caches the attributes referenced by the formation formula, copies
        the network attributes into the table, stores the attribute
        distributions at initialization and pushes the required fields
        back to the network.

        Parameters
        ----------
        formation : str
            Formation formula of the network model
        status : scalar or array-like, default="s"
            Initial disease status, used when the network carries none
        """
        ctx = self.ctx
        ctx.temp.nwterms = get_formula_term_attr(formation, ctx.nw)
        copy_nwattr_to_datattr(ctx)
        if "status" not in ctx.attr:
            ctx.attr.register(
                "status", np.broadcast_to(status, ctx.attr.n_members)
            )
        ctx.temp.t1_tab = get_attr_prop(ctx.attr, ctx.temp.nwterms or [])
        copy_datattr_to_nwattr(ctx)
        check_attr_lengths(ctx)
        self._record(at=1)
        logger.info("Initialized %d members; model terms %s",
                    ctx.attr.n_members, ctx.temp.nwterms)

    @log_call
    def draw_departures(self) -> np.ndarray:
        """Members leaving this step, each with probability ``d_rate``."""
        n = self.ctx.attr.n_members
        leaving = self.ctx.rng.random(n) < self.ctx.param.d_rate
        return np.flatnonzero(leaving) + 1

    @log_call
    def draw_arrivals(self, a_rate: float) -> int:
        """Number of entrants this step, Poisson with mean ``a_rate * n``."""
        return int(self.ctx.rng.poisson(a_rate * self.ctx.attr.n_members))

    @log_call
    def step(
        self,
        at: int,
        arrivals: int = 0,
        departures: Sequence[int] = (),
        arrival_status: Any = "s",
        arrival_group: Optional[Any] = None
    ) -> np.ndarray:
        """
        Process one batch of departures and arrivals at time ``at``.

        Parameters
        ----------
        at : int
            Current time step
        arrivals : int, default=0
            Number of members entering
        departures : sequence of int, default=()
            1-based identities of members leaving, as of the start of the
            step
        arrival_status : scalar, default="s"
            Disease status given to entrants
        arrival_group : scalar or array-like, optional
            Group of the entrants; required in two-group populations

        Returns
        -------
        new_ids : np.ndarray
            1-based identities of the entrants after departures

        Raises
        ------
        ValueError
            If entrants of a two-group population have no valid group; the
            table and network are left untouched

        Notes
        -----
        Network attributes are copied into the table only by
        ``initialize``. Afterwards the table is authoritative: the network
        holds missing values for entrants on every field that is not
        copied out, so copying in again would overwrite assigned entrant
        attributes.
        """
        ctx = self.ctx
        entrant_groups = None
        if arrivals > 0 and ctx.param.groups == 2:
            if arrival_group is None:
                raise ValueError(
                    "arrival_group is required in two-group populations"
                )
            entrant_groups = np.broadcast_to(arrival_group, arrivals)

        departures = np.unique(np.asarray(departures, dtype=int))
        if departures.size:
            ctx.attr.remove_members(departures)
            ctx.nw.delete_vertices(departures, at)

        new_ids = np.empty(0, dtype=int)
        if arrivals > 0:
            curr_tab = get_attr_prop(ctx.attr, ctx.temp.nwterms or [])
            ctx.nw.add_vertices(arrivals)
            new_ids = ctx.attr.append_members(arrivals, at)
            ctx.attr.append("status", np.full(arrivals, arrival_status))
            if entrant_groups is not None:
                ctx.attr.append("group", entrant_groups)
            auto_update_attr(ctx, new_ids, curr_tab)

        copy_datattr_to_nwattr(ctx)
        check_attr_lengths(ctx)
        self._record(at)
        logger.debug("Step %d: %d departures, %d arrivals, %d members",
                     at, departures.size, arrivals, ctx.attr.n_members)
        return new_ids

    @log_call
    def run(self, formation: str, a_rate: float,
            nsteps: Optional[int] = None) -> SimulationOutput:
        """
        Run departures and arrivals for ``nsteps`` steps.

        Group of two-group entrants is drawn in proportion to the current
        group sizes.

        Returns
        -------
        output : SimulationOutput
            Member counts per step in ``epi["num"]`` and, when
            ``control.epi_by`` is set, one series per value of that
            attribute
        """
        nsteps = nsteps or self.ctx.control.nsteps
        self.initialize(formation)
        for at in range(2, nsteps + 1):
            departures = self.draw_departures()
            arrivals = self.draw_arrivals(a_rate)
            arrival_group = None
            if self.ctx.param.groups == 2:
                groups = self.ctx.attr["group"]
                arrival_group = self.ctx.rng.choice(groups, size=arrivals)
            self.step(at, arrivals, departures, arrival_group=arrival_group)
        return self.output()

    @log_call
    def output(self) -> SimulationOutput:
        """Recorded member counts as a single-replicate output."""
        frame = pd.DataFrame(self.history).set_index("time")
        epi = {name: frame[[name]].rename(columns={name: "sim1"})
               for name in frame.columns}
        return SimulationOutput(
            epi=epi, control=OutputControl(nsteps=len(frame))
        )

    def _record(self, at: int) -> None:
        ctx = self.ctx
        row: Dict[str, Any] = {"time": at, "num": ctx.attr.n_members}
        by = ctx.control.epi_by
        if by is not None and ctx.temp.epi_by_vals is not None:
            values = ctx.attr[by]
            for val in ctx.temp.epi_by_vals:
                row[f"num.{by}{val}"] = int(np.sum(values == val))
        self.history.append(row)


@log_call
def run_simulation(
    cfg: DictConfig,
    make_network: Callable[[], StructuralNetwork]
) -> SimulationOutput:
    """
    Run ``control.nsims`` independent replicates of a configured model.

    Replicate seeds are derived from ``population.random_seed`` with
    ``replicate_seeds``, so the whole set is reproducible.

    Parameters
    ----------
    cfg : DictConfig
        Configuration as returned by ``load_config``
    make_network : callable
        Returns a fresh network for each replicate

    Returns
    -------
    output : SimulationOutput
        One column ``sim1 .. simN`` per replicate in every ``epi`` frame
    """
    nsims = cfg.control.nsims
    seeds = replicate_seeds(cfg.population.random_seed, nsims)
    columns: Dict[str, List[pd.Series]] = {}
    for sim, seed in enumerate(seeds, start=1):
        ctx = SimulationContext.from_config(cfg, make_network(), seed=seed)
        out = AttributeEngine(ctx).run(
            cfg.population.formation, cfg.population.a_rate,
            cfg.control.nsteps,
        )
        for name, frame in out.epi.items():
            columns.setdefault(name, []).append(
                frame["sim1"].rename(f"sim{sim}")
            )
        logger.info("Replicate %d of %d finished with %d members",
                    sim, nsims, ctx.attr.n_members)

    epi = {name: pd.concat(series, axis=1) for name, series in columns.items()}
    return SimulationOutput(
        epi=epi,
        control=OutputControl(nsteps=cfg.control.nsteps, nsims=nsims),
    )
