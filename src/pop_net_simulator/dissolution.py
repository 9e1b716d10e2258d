"""
Dissolution calibration module for partnership network simulation.

This module converts target mean partnership durations into the logit
coefficients of a dissolution model, adjusting them for population departure
acting as a competing risk to edge dissolution.

In discrete time an edge of mean duration D persists from one step to the
next with probability

    pg = (D - 1) / D

and the crude coefficient is logit(pg). When members leave the population
at rate d per step, an edge also ends whenever either partner departs, so
the edge survives a step only with probability pg' * (1 - d)^2. Solving for
the persistence probability pg' that reproduces the target duration gives
the adjusted coefficient

    coef_adj = ln(pg / ((1 - d)^2 - pg))

which only exists while (1 - d)^2 > pg.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.special import expit, logit  # type: ignore

from .exceptions import (
    ArityMismatch,
    Infeasible,
    InvalidDuration,
    InvalidRate,
    MalformedSpec,
    UnsupportedTerm,
)
from .utils.logging import log_call

logger = logging.getLogger(__name__)

BASELINE_TERM = "edges"
STRATIFYING_TERMS = ("nodematch", "nodemix", "nodefactor")

_TERM_RE = re.compile(
    r"^offset\(\s*(?P<name>\w+)\s*(?:\((?P<args>.*)\))?\s*\)$"
)
_ATTR_RE = re.compile(r"""["']([^"']+)["']""")
_DIFF_RE = re.compile(r"\bdiff\s*=\s*(TRUE|True|T|true)\b")


class ModelType(str, Enum):
    """Classification of a dissolution model."""

    HOMOGENEOUS = "homog"
    HETEROGENEOUS = "hetero"
    INVALID = "invalid"


@dataclass(frozen=True)
class DissolutionTerm:
    """
    One ``offset(...)`` term of a dissolution formula.

    Parameters
    ----------
    name : str
        Term name, e.g. ``"edges"`` or ``"nodematch"``
    attr : str, optional
        Stratifying vertex attribute
    diff : bool, default=False
        Whether a nodematch term has one stratum per attribute level
    """

    name: str
    attr: Optional[str] = None
    diff: bool = False

    @property
    def is_offset_edges(self) -> bool:
        return self.name == BASELINE_TERM

    def n_strata(self, n_levels: Optional[int]) -> Optional[int]:
        """
        Number of durations this stratifying term implies.

        Returns None when the count depends on attribute levels that were
        not supplied.
        """
        if self.name == "nodematch" and not self.diff:
            return 2
        if n_levels is None:
            return None
        if self.name == "nodematch":
            return 1 + n_levels
        if self.name == "nodefactor":
            return n_levels
        if self.name == "nodemix":
            return n_levels * (n_levels + 1) // 2
        return None


@dataclass(frozen=True)
class DissolutionModel:
    """Parsed right-hand-side dissolution formula."""

    formula: str
    terms: Tuple[DissolutionTerm, ...]

    @property
    def stratifier(self) -> Optional[DissolutionTerm]:
        return self.terms[1] if len(self.terms) > 1 else None


@dataclass(frozen=True, eq=False)
class DissolutionCoefficients:
    """
    Dissolution coefficients derived from target durations.

    Attributes
    ----------
    dissolution : DissolutionModel
        The dissolution model the coefficients belong to
    duration : np.ndarray
        Target mean durations, one per stratum
    coef_crude : np.ndarray
        Logit coefficients ignoring departure. Strata after the first are
        offsets from the first.
    coef_adj : np.ndarray
        Coefficients adjusted for departure as a competing risk, coded the
        same way as ``coef_crude``
    d_rate : float
        Per-step departure rate
    model_type : ModelType
        Homogeneous or heterogeneous model
    """

    dissolution: DissolutionModel
    duration: np.ndarray
    coef_crude: np.ndarray
    coef_adj: np.ndarray
    d_rate: float
    model_type: ModelType = field(default=ModelType.HOMOGENEOUS)

    def summary(self) -> str:
        """Return a printable summary of the coefficients."""
        lines = [
            "Dissolution Coefficients",
            "=======================",
            f"Dissolution Model: {self.dissolution.formula}",
            f"Target Statistics: {_fmt(self.duration)}",
            f"Crude Coefficient: {_fmt(self.coef_crude)}",
            f"Mortality/Exit Rate: {self.d_rate:g}",
            f"Adjusted Coefficient: {_fmt(self.coef_adj)}",
        ]
        return "\n".join(lines)


def _fmt(values: np.ndarray) -> str:
    return " ".join(f"{v:.6g}" for v in values)


@log_call
def parse_dissolution(
    dissolution: Union[str, DissolutionModel]
) -> DissolutionModel:
    """
    Parse a dissolution formula such as ``~offset(edges)``.

    Parameters
    ----------
    dissolution : str or DissolutionModel
        Right-hand-sided formula, e.g.
        ``~offset(edges) + offset(nodematch("race", diff = TRUE))``.
        Already parsed models are returned unchanged.

    Returns
    -------
    model : DissolutionModel
        Parsed terms in formula order

    Raises
    ------
    MalformedSpec
        If the formula is empty or a term is not of the form ``offset(...)``
    """
    if isinstance(dissolution, DissolutionModel):
        return dissolution

    text = dissolution.strip()
    if text.startswith("~"):
        text = text[1:]
    parts = [p.strip() for p in text.split("+")]
    if not parts or not all(parts):
        raise MalformedSpec(f"Cannot parse dissolution formula {dissolution!r}")

    terms = []
    for part in parts:
        match = _TERM_RE.match(part)
        if match is None:
            raise MalformedSpec(
                f"Dissolution terms must be offsets, got {part!r}"
            )
        args = match.group("args") or ""
        attr = _ATTR_RE.search(args)
        terms.append(DissolutionTerm(
            name=match.group("name"),
            attr=attr.group(1) if attr else None,
            diff=bool(_DIFF_RE.search(args)),
        ))
    return DissolutionModel(formula=dissolution.strip(), terms=tuple(terms))


@log_call
def classify_dissolution(model: DissolutionModel) -> ModelType:
    """Classify a parsed dissolution model as homogeneous or heterogeneous."""
    if not model.terms or not model.terms[0].is_offset_edges:
        return ModelType.INVALID
    if len(model.terms) == 1:
        return ModelType.HOMOGENEOUS
    if len(model.terms) == 2 and model.terms[1].name in STRATIFYING_TERMS:
        return ModelType.HETEROGENEOUS
    return ModelType.INVALID


def _check_d_rate(d_rate: Any) -> float:
    rate = np.asarray(d_rate, dtype=float)
    if rate.size != 1:
        raise InvalidRate("Length of d_rate must be 1")
    value = float(rate.reshape(-1)[0])
    if not 0.0 <= value < 1.0:
        raise InvalidRate(f"d_rate must be in [0, 1), got {value}")
    return value


def _check_arity(model: DissolutionModel, n_durations: int,
                 levels: Optional[Sequence[Any]]) -> None:
    term = model.stratifier
    if term is None:
        if n_durations != 1:
            raise ArityMismatch(
                f"Dissolution model length is 1, but number of duration "
                f"was {n_durations}"
            )
        return

    n_levels = len(set(levels)) if levels is not None else None
    expected = term.n_strata(n_levels)
    if expected is None:
        if n_durations < 2:
            raise ArityMismatch(
                f"Heterogeneous dissolution model on {term.name} needs at "
                f"least 2 durations, got {n_durations}"
            )
    elif n_durations != expected:
        raise ArityMismatch(
            f"{term.name}({term.attr!r}) implies {expected} strata, but "
            f"number of duration was {n_durations}"
        )


@log_call
def dissolution_coefs(
    dissolution: Union[str, DissolutionModel],
    duration: Union[float, Sequence[float], np.ndarray],
    d_rate: float = 0.0,
    levels: Optional[Sequence[Any]] = None
) -> DissolutionCoefficients:
    """
    Calculate dissolution coefficients from target mean edge durations.

    Supported models are ``~offset(edges)`` (one duration for all edges)
    and ``~offset(edges)`` followed by one of ``offset(nodematch(...))``,
    ``offset(nodemix(...))`` or ``offset(nodefactor(...))``. For the
    heterogeneous models the first duration is the base stratum (e.g.
    non-matched dyads for nodematch) and the remaining coefficients are
    stored as offsets from it.

    Parameters
    ----------
    dissolution : str or DissolutionModel
        Right-hand-sided dissolution formula
    duration : float or sequence of float
        Mean edge durations in time steps, one per stratum, each >= 1
    d_rate : float, default=0.0
        Per-step departure rate from the population, in [0, 1)
    levels : sequence, optional
        Values of the stratifying attribute, used to count the strata of
        nodemix, nodefactor and ``nodematch(diff = TRUE)`` terms

    Returns
    -------
    coefs : DissolutionCoefficients
        Crude and departure-adjusted coefficients

    Raises
    ------
    InvalidDuration
        If any duration is below 1
    InvalidRate
        If d_rate is not a single value in [0, 1)
    MalformedSpec
        If the formula does not start with ``offset(edges)`` or has more
        than two terms
    UnsupportedTerm
        If the second term is not a supported stratifying term
    ArityMismatch
        If the number of durations does not match the number of strata
    Infeasible
        If (1 - d_rate)^2 does not exceed the persistence probability of
        some stratum

    Examples
    --------
    >>> coefs = dissolution_coefs("~offset(edges)", duration=25)
    >>> print(f"{coefs.coef_crude[0]:.3f}")
    3.178
    """
    durations = np.array(duration, dtype=float, ndmin=1)
    if durations.ndim != 1:
        raise ArityMismatch("duration must be a flat sequence")
    if np.any(~np.isfinite(durations)) or np.any(durations < 1):
        raise InvalidDuration("All values in duration must be >= 1")
    rate = _check_d_rate(d_rate)

    model = parse_dissolution(dissolution)
    if not model.terms[0].is_offset_edges:
        raise MalformedSpec("Dissolution models must start with offset(edges)")
    if len(model.terms) > 2:
        raise MalformedSpec(
            "Dissolution models support offset(edges) plus at most one "
            "stratifying term"
        )
    stratifier = model.stratifier
    if stratifier is not None and stratifier.name not in STRATIFYING_TERMS:
        raise UnsupportedTerm(
            "Supported heterogeneous dissolution model terms are nodematch, "
            "nodefactor, or nodemix"
        )
    _check_arity(model, len(durations), levels)
    model_type = classify_dissolution(model)

    pg = (durations - 1) / durations
    ps2 = (1 - rate) ** 2
    for i, p in enumerate(pg):
        if ps2 <= p:
            max_rate = round(1 - float(np.sqrt(p)), 5)
            raise Infeasible(
                float(durations[i]), max_rate,
                stratum=i + 1 if stratifier is not None else None,
            )

    coef_crude = logit(pg)
    with np.errstate(divide="ignore"):
        coef_adj = np.log(pg / (ps2 - pg))

    if model_type is ModelType.HETEROGENEOUS:
        coef_crude[1:] -= coef_crude[0]
        coef_adj[1:] -= coef_adj[0]

    for arr in (durations, coef_crude, coef_adj):
        arr.setflags(write=False)

    logger.info("Dissolution coefficients for %s: crude=%s adjusted=%s",
                model.formula, _fmt(coef_crude), _fmt(coef_adj))
    return DissolutionCoefficients(
        dissolution=model,
        duration=durations,
        coef_crude=coef_crude,
        coef_adj=coef_adj,
        d_rate=rate,
        model_type=model_type,
    )


@log_call
def coef_to_duration(
    coef: Union[float, np.ndarray]
) -> Union[float, np.ndarray]:
    """
    Convert a crude homogeneous coefficient back to a mean duration.

    Inverts the logit link, ``pg = expit(coef)``, then ``D = 1 / (1 - pg)``.

    Parameters
    ----------
    coef : float or np.ndarray
        Crude logit coefficient(s), not offsets

    Returns
    -------
    duration : float or np.ndarray
        Implied mean edge duration(s)

    Examples
    --------
    >>> print(f"{coef_to_duration(np.log(0.96 / 0.04)):.1f}")
    25.0
    """
    pg = expit(np.asarray(coef, dtype=float))
    duration = 1 / (1 - pg)
    if np.isscalar(coef):
        return float(duration)
    return duration
