"""
Attribute assignment for members entering the population.

Each profiled attribute has an entrant rule: draw from the current
distribution of the attribute, draw from its distribution at initialization,
or give every entrant the same fixed value. Rules are resolved once from the
run configuration into ``EntrantRule`` variants.
"""

import logging
from dataclasses import dataclass
from typing import (TYPE_CHECKING, Any, Dict, List, Mapping, Optional,
                    Sequence, Union)

import numpy as np
import pandas as pd

from .attributes import AttributeKind
from .exceptions import DistributionUnavailable
from .utils.logging import log_call

if TYPE_CHECKING:
    from .context import SimulationContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentDistribution:
    """Sample entrants from the distribution at the current step."""


@dataclass(frozen=True)
class InitialDistribution:
    """Sample entrants from the distribution at initialization."""


@dataclass(frozen=True)
class FixedValue:
    """Give every entrant the same value."""

    value: Any


EntrantRule = Union[CurrentDistribution, InitialDistribution, FixedValue]

CURRENT = CurrentDistribution()
INITIAL = InitialDistribution()

_RULE_NAMES = {"current": CURRENT, "t1": INITIAL, "initial": INITIAL}


@log_call
def resolve_attr_rules(
    rules: Optional[Mapping[str, Any]]
) -> Dict[str, EntrantRule]:
    """
    Convert configured entrant rules into ``EntrantRule`` variants.

    Parameters
    ----------
    rules : mapping, optional
        Attribute name to ``"current"``, ``"t1"`` (distribution at
        initialization) or any other value, which is used as a fixed value

    Returns
    -------
    resolved : dict of str to EntrantRule
        One variant per configured attribute

    Examples
    --------
    >>> resolve_attr_rules({"race": "t1", "risk": 2})
    {'race': InitialDistribution(), 'risk': FixedValue(value=2)}
    """
    resolved: Dict[str, EntrantRule] = {}
    for name, rule in (rules or {}).items():
        if isinstance(rule, (CurrentDistribution, InitialDistribution,
                             FixedValue)):
            resolved[name] = rule
        elif isinstance(rule, str) and rule in _RULE_NAMES:
            resolved[name] = _RULE_NAMES[rule]
        else:
            resolved[name] = FixedValue(rule)
    return resolved


def _sample(
    dist: Optional[pd.Series],
    name: str,
    kind: AttributeKind,
    size: int,
    rng: np.random.Generator
) -> np.ndarray:
    if dist is None or len(dist) == 0 or not np.sum(dist.to_numpy()) > 0:
        raise DistributionUnavailable(
            f"No distribution available to sample {name!r} for entrants"
        )
    if kind is AttributeKind.NUMERIC:
        levels = pd.to_numeric(dist.index).to_numpy()
    else:
        levels = dist.index.to_numpy(dtype=object)
    probs = dist.to_numpy(dtype=float)
    return rng.choice(levels, size=size, replace=True, p=probs / probs.sum())


def _draw(
    rule: EntrantRule,
    name: str,
    kind: AttributeKind,
    size: int,
    curr_tab: Mapping[str, pd.Series],
    t1_tab: Mapping[str, pd.Series],
    rng: np.random.Generator
) -> np.ndarray:
    if isinstance(rule, CurrentDistribution):
        return _sample(curr_tab.get(name), name, kind, size, rng)
    if isinstance(rule, InitialDistribution):
        return _sample(t1_tab.get(name), name, kind, size, rng)
    if kind is AttributeKind.CATEGORICAL:
        return np.full(size, rule.value, dtype=object)
    return np.full(size, rule.value)


@log_call
def auto_update_attr(
    ctx: "SimulationContext",
    new_ids: Sequence[int],
    curr_tab: Mapping[str, pd.Series]
) -> List[str]:
    """
    Assign attribute values to the members that entered this step.

    Every attribute of ``curr_tab`` whose array is shorter than the number
    of members is extended by one value per entrant, following the
    attribute's entrant rule (``CurrentDistribution`` when none is
    configured).

    Parameters
    ----------
    ctx : SimulationContext
        Replicate context; its attribute table is extended in place and its
        random generator is used for sampling
    new_ids : sequence of int
        1-based identities of the entrants
    curr_tab : mapping of str to pd.Series
        Attribute distributions at the current step, as returned by
        ``get_attr_prop`` before the entrants were added

    Returns
    -------
    updated : list of str
        Names of the attributes that were extended

    Raises
    ------
    DistributionUnavailable
        If the distribution a rule refers to is missing or empty
    ValueError
        If an attribute would not end up with one value per member; only
        one batch of entrants can be processed per step
    """
    table = ctx.attr
    rules = ctx.control.attr_rules
    t1_tab = ctx.temp.t1_tab or {}
    n_members = table.n_members
    n_new = len(np.unique(np.asarray(new_ids)))

    updated = []
    for name in curr_tab:
        if name not in table or len(table[name]) >= n_members:
            continue
        if len(table[name]) + n_new != n_members:
            raise ValueError(
                f"Attribute {name!r} has {len(table[name])} values, "
                f"{n_new} entrants and {n_members} members; entrants must "
                f"be processed in a single batch per step"
            )
        rule = rules.get(name, CURRENT)
        kind = table.kinds[name]
        values = _draw(rule, name, kind, n_new, curr_tab, t1_tab, ctx.rng)
        table.append(name, values)
        updated.append(name)

    if updated:
        logger.debug("Assigned %s for %d entrants", updated, n_new)
    return updated
