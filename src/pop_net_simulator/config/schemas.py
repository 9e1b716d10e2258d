from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PopulationConfig:
    n_nodes: int
    groups: int
    random_seed: int
    formation: str
    a_rate: float = 0.0


@dataclass
class DissolutionConfig:
    formula: str
    duration: List[float]
    d_rate: float = 0.0
    levels: Optional[List[Any]] = None


@dataclass
class ControlConfig:
    nsteps: int
    nsims: int = 1
    epi_by: Optional[str] = None
    attr_rules: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunConfig:
    population: PopulationConfig
    dissolution: DissolutionConfig
    control: ControlConfig
