"""
Per-replicate simulation context.

A ``SimulationContext`` bundles everything one replicate mutates: the
attribute table, the structural network, the run parameters and controls,
scratch state carried between steps, and the seeded random generator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from omegaconf import DictConfig, OmegaConf

from .attributes import AttributeTable
from .entrants import EntrantRule, resolve_attr_rules
from .network import StructuralNetwork
from .utils.logging import log_call


@dataclass
class RunParameters:
    """Scalar model parameters."""

    groups: int = 1
    d_rate: float = 0.0


@dataclass
class RunControl:
    """Run-time settings resolved once at setup."""

    attr_rules: Dict[str, EntrantRule] = field(default_factory=dict)
    epi_by: Optional[str] = None
    nsteps: int = 1


@dataclass
class ScratchState:
    """State cached between steps."""

    nwterms: Optional[List[str]] = None
    t1_tab: Dict[str, pd.Series] = field(default_factory=dict)
    epi_by_vals: Optional[np.ndarray] = None


@dataclass
class SimulationContext:
    """Everything a single replicate reads and mutates."""

    attr: AttributeTable
    nw: StructuralNetwork
    param: RunParameters = field(default_factory=RunParameters)
    control: RunControl = field(default_factory=RunControl)
    temp: ScratchState = field(default_factory=ScratchState)
    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    @classmethod
    def from_config(
        cls,
        cfg: DictConfig,
        nw: StructuralNetwork,
        seed: Optional[int] = None
    ) -> "SimulationContext":
        """
        Build a context from a composed configuration.

        Parameters
        ----------
        cfg : DictConfig
            Configuration with ``population``, ``dissolution`` and
            ``control`` groups
        nw : StructuralNetwork
            Network of this replicate
        seed : int, optional
            Seed for this replicate; defaults to ``population.random_seed``
        """
        rules: Any = OmegaConf.to_container(cfg.control.attr_rules,
                                            resolve=True) or {}
        if seed is None:
            seed = cfg.population.random_seed
        return cls(
            attr=AttributeTable.initialize(nw.size),
            nw=nw,
            param=RunParameters(groups=cfg.population.groups,
                                d_rate=cfg.dissolution.d_rate),
            control=RunControl(attr_rules=resolve_attr_rules(rules),
                               epi_by=cfg.control.epi_by,
                               nsteps=cfg.control.nsteps),
            rng=np.random.default_rng(seed),
        )


@log_call
def replicate_seeds(seed: Optional[int], nsims: int) -> List[int]:
    """
    Independent seeds for ``nsims`` replicates derived from one seed.

    Examples
    --------
    >>> replicate_seeds(42, 3) == replicate_seeds(42, 3)
    True
    """
    children = np.random.SeedSequence(seed).spawn(nsims)
    return [int(child.generate_state(1)[0]) for child in children]
