"""
Tests for building simulation contexts.
"""

from pop_net_simulator.config import load_config
from pop_net_simulator.context import SimulationContext, replicate_seeds
from pop_net_simulator.entrants import FixedValue, InitialDistribution
from pop_net_simulator.network import EdgeListNetwork


def test_from_config():
    cfg = load_config(["control=entry_rules", "control.attr_rules.riskg=2"])
    nw = EdgeListNetwork(cfg.population.n_nodes)
    ctx = SimulationContext.from_config(cfg, nw)

    assert ctx.attr.n_members == cfg.population.n_nodes
    assert ctx.param.d_rate == cfg.dissolution.d_rate
    assert ctx.control.epi_by == "race"
    assert ctx.control.attr_rules["race"] == InitialDistribution()
    assert ctx.control.attr_rules["riskg"] == FixedValue(2)


def test_from_config_seed():
    cfg = load_config()
    draws = [
        SimulationContext.from_config(cfg, EdgeListNetwork(5)).rng.random()
        for _ in range(2)
    ]
    assert draws[0] == draws[1]
    other = SimulationContext.from_config(cfg, EdgeListNetwork(5), seed=9)
    assert other.rng.random() != draws[0]


def test_replicate_seeds():
    seeds = replicate_seeds(42, 3)
    assert seeds == replicate_seeds(42, 3)
    assert len(set(seeds)) == 3
