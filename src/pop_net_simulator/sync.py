"""
Synchronization between the attribute table and the network.

The attribute table is the authoritative record of member attributes during
a simulation; the network keeps its own copy for the formation/dissolution
engine. Copy-in refreshes the table from the network, copy-out pushes the
fields the engine needs back onto the network.
"""

import logging
from typing import TYPE_CHECKING, List

import numpy as np
import pandas as pd

from .attributes import NETWORK_RESERVED
from .exceptions import MissingAttribute
from .utils.logging import log_call

if TYPE_CHECKING:
    from .context import SimulationContext

logger = logging.getLogger(__name__)

SPECIAL_ATTRIBUTES = ("status",)


@log_call
def copy_nwattr_to_datattr(ctx: "SimulationContext") -> List[str]:
    """
    Copy the network's vertex attributes into the attribute table.

    Reserved network fields are skipped. When ``ctx.control.epi_by`` names
    one of the copied attributes, its distinct values are stored in
    ``ctx.temp.epi_by_vals`` for by-group reporting.

    Returns
    -------
    copied : list of str
        Names of the copied attributes
    """
    copied = []
    for name in ctx.nw.vertex_attribute_names():
        if name in NETWORK_RESERVED:
            continue
        values = ctx.nw.get_vertex_attribute(name)
        ctx.attr.register(name, values)
        copied.append(name)
        if ctx.control.epi_by is not None and ctx.control.epi_by == name:
            ctx.temp.epi_by_vals = pd.unique(pd.Series(values).dropna())
    logger.debug("Copied %s from network to attribute table", copied)
    return copied


@log_call
def required_attributes(ctx: "SimulationContext") -> List[str]:
    """Fields the network must carry: model terms, status and group."""
    required = list(ctx.temp.nwterms or [])
    special = list(SPECIAL_ATTRIBUTES)
    if ctx.param.groups == 2:
        special.append("group")
    for name in special:
        if name not in required:
            required.append(name)
    return required


@log_call
def copy_datattr_to_nwattr(ctx: "SimulationContext") -> List[str]:
    """
    Copy the required attributes from the attribute table to the network.

    Only the attributes referenced by the network model terms, ``status``,
    and ``group`` in two-group populations are written; other table fields
    stay off the network.

    Returns
    -------
    copied : list of str
        Names of the attributes written to the network

    Raises
    ------
    MissingAttribute
        If a required attribute is not in the attribute table
    """
    required = required_attributes(ctx)
    missing = [name for name in required if name not in ctx.attr]
    if missing:
        raise MissingAttribute(
            f"Attributes {missing} must be on the attribute table to be "
            f"copied to the network"
        )
    for name in required:
        ctx.nw.set_vertex_attribute(name, np.asarray(ctx.attr[name]))
    logger.debug("Copied %s from attribute table to network", required)
    return required
