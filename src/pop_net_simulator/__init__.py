"""Partnership network simulation: dissolution calibration and attributes."""

from typing import List

from .attributes import (
    AttributeKind,
    AttributeTable,
    NETWORK_RESERVED,
    PROFILE_EXCLUDED,
    get_attr_prop
)
from .context import (
    RunControl,
    RunParameters,
    ScratchState,
    SimulationContext,
    replicate_seeds
)
from .degree import get_degree
from .diagnostics import (
    DegreeBalance,
    check_degdist_bal,
    edgelist_censor,
    edgelist_meanage
)
from .dissolution import (
    DissolutionCoefficients,
    DissolutionModel,
    ModelType,
    classify_dissolution,
    coef_to_duration,
    dissolution_coefs,
    parse_dissolution
)
from .engine import AttributeEngine, check_attr_lengths, run_simulation
from .entrants import (
    CurrentDistribution,
    FixedValue,
    InitialDistribution,
    auto_update_attr,
    resolve_attr_rules
)
from .exceptions import (
    ArityMismatch,
    CalibrationError,
    DistributionUnavailable,
    Infeasible,
    InvalidDuration,
    InvalidRate,
    MalformedSpec,
    MissingAttribute,
    MissingSize,
    NetSimError,
    ReservedAttributeError,
    UnsupportedTerm
)
from .network import (
    EdgeListNetwork,
    StructuralNetwork,
    get_formula_term_attr,
    get_network_term_attr,
    idgroup
)
from .output import OutputControl, SimulationOutput, truncate_sim
from .sync import (
    copy_datattr_to_nwattr,
    copy_nwattr_to_datattr,
    required_attributes
)

__all__: List[str] = [
    # Dissolution calibration
    "dissolution_coefs",
    "parse_dissolution",
    "classify_dissolution",
    "coef_to_duration",
    "DissolutionCoefficients",
    "DissolutionModel",
    "ModelType",
    # Attribute table and distributions
    "AttributeTable",
    "AttributeKind",
    "NETWORK_RESERVED",
    "PROFILE_EXCLUDED",
    "get_attr_prop",
    # Entrant attributes
    "auto_update_attr",
    "resolve_attr_rules",
    "CurrentDistribution",
    "InitialDistribution",
    "FixedValue",
    # Network synchronization
    "copy_nwattr_to_datattr",
    "copy_datattr_to_nwattr",
    "required_attributes",
    # Network interface and helpers
    "StructuralNetwork",
    "EdgeListNetwork",
    "get_formula_term_attr",
    "get_network_term_attr",
    "idgroup",
    "get_degree",
    # Diagnostics
    "check_degdist_bal",
    "edgelist_censor",
    "edgelist_meanage",
    "DegreeBalance",
    # Simulation driver
    "SimulationContext",
    "RunParameters",
    "RunControl",
    "ScratchState",
    "replicate_seeds",
    "AttributeEngine",
    "check_attr_lengths",
    "run_simulation",
    "SimulationOutput",
    "OutputControl",
    "truncate_sim",
    # Errors
    "NetSimError",
    "CalibrationError",
    "InvalidDuration",
    "ArityMismatch",
    "InvalidRate",
    "MalformedSpec",
    "UnsupportedTerm",
    "Infeasible",
    "DistributionUnavailable",
    "MissingSize",
    "MissingAttribute",
    "ReservedAttributeError",
]
__version__ = "0.1.0"
