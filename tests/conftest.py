"""
Shared test fixtures for network attribute tests.

This module provides small networks and simulation contexts reused across
test modules.
"""

import os
import sys

import numpy as np
import pytest

# Add src and the repository root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from pop_net_simulator.attributes import AttributeTable  # noqa: E402
from pop_net_simulator.context import (  # noqa: E402
    RunControl,
    RunParameters,
    SimulationContext
)
from pop_net_simulator.entrants import resolve_attr_rules  # noqa: E402
from pop_net_simulator.network import EdgeListNetwork  # noqa: E402


@pytest.fixture
def race_network():
    """Ten-member network with race, risk group and age attributes."""
    nw = EdgeListNetwork(10)
    nw.set_vertex_attribute("race", ["B"] * 4 + ["W"] * 6)
    nw.set_vertex_attribute("riskg", np.array([1, 2, 1, 2, 1, 2, 1, 1, 1, 2]))
    nw.set_vertex_attribute("age", np.arange(20, 30, dtype=float))
    nw.add_edge(1, 2, onset=1)
    nw.add_edge(3, 7, onset=1)
    return nw


@pytest.fixture
def two_group_network():
    """Eight-member two-group network."""
    nw = EdgeListNetwork(8)
    nw.set_vertex_attribute("group", np.repeat([1, 2], 4))
    nw.set_vertex_attribute("race", ["B", "W"] * 4)
    return nw


@pytest.fixture
def make_context():
    """Factory for a context around a given network."""

    def _make(nw, rules=None, groups=1, epi_by=None, seed=42):
        return SimulationContext(
            attr=AttributeTable.initialize(nw.size),
            nw=nw,
            param=RunParameters(groups=groups, d_rate=0.01),
            control=RunControl(attr_rules=resolve_attr_rules(rules),
                               epi_by=epi_by, nsteps=10),
            rng=np.random.default_rng(seed),
        )

    return _make


@pytest.fixture
def race_context(race_network, make_context):
    """Context around the race network, no entrant rules configured."""
    return make_context(race_network)
