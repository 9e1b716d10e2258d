"""
Tests for entrant attribute assignment.
"""

import numpy as np
import pytest

from pop_net_simulator.attributes import get_attr_prop
from pop_net_simulator.entrants import (
    CurrentDistribution,
    FixedValue,
    InitialDistribution,
    auto_update_attr,
    resolve_attr_rules
)
from pop_net_simulator.exceptions import DistributionUnavailable
from pop_net_simulator.sync import copy_nwattr_to_datattr


def _add_entrants(ctx, n, at=2):
    curr_tab = get_attr_prop(ctx.attr, ["race"])
    ctx.nw.add_vertices(n)
    new_ids = ctx.attr.append_members(n, at)
    return new_ids, curr_tab


class TestResolveAttrRules:
    """Test suite for entrant rule resolution."""

    def test_named_rules(self):
        """Test that rule names map to distribution variants."""
        rules = resolve_attr_rules({"race": "current", "riskg": "t1"})
        assert rules["race"] == CurrentDistribution()
        assert rules["riskg"] == InitialDistribution()

    def test_literal_rule(self):
        """Test that any other value becomes a fixed value."""
        rules = resolve_attr_rules({"riskg": 2, "race": "W"})
        assert rules["riskg"] == FixedValue(2)
        assert rules["race"] == FixedValue("W")

    def test_empty(self):
        """Test that missing rules resolve to an empty mapping."""
        assert resolve_attr_rules(None) == {}

    def test_variants_pass_through(self):
        """Test that already resolved rules are kept."""
        rule = FixedValue(3)
        assert resolve_attr_rules({"x": rule})["x"] is rule


class TestAutoUpdateAttr:
    """Test suite for auto_update_attr."""

    def test_lengths_match_members(self, race_context):
        """Test that every tracked attribute covers all members."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 5)

        updated = auto_update_attr(ctx, new_ids, curr_tab)

        assert set(updated) == {"race", "riskg", "age"}
        for name in curr_tab:
            assert len(ctx.attr[name]) == ctx.attr.n_members == 15

    def test_no_new_categories(self, race_context):
        """Test that sampled labels were all observed before."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 200)

        auto_update_attr(ctx, new_ids, curr_tab)

        assert set(ctx.attr["race"][10:]) <= {"B", "W"}
        assert set(ctx.attr["riskg"][10:].tolist()) <= {1, 2}
        assert set(ctx.attr["age"][10:].tolist()) <= set(range(20, 30))

    def test_sampling_follows_distribution(self, race_context):
        """Test that current-distribution draws match the proportions."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 5000)

        auto_update_attr(ctx, new_ids, curr_tab)

        share_b = np.mean(ctx.attr["race"][10:] == "B")
        assert share_b == pytest.approx(0.4, abs=0.03)

    def test_numeric_dtype_preserved(self, race_context):
        """Test that numeric levels keep the stored dtype."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 3)

        auto_update_attr(ctx, new_ids, curr_tab)

        assert ctx.attr["riskg"].dtype.kind == "i"

    def test_initial_distribution_rule(self, race_network, make_context):
        """Test sampling from the distribution at initialization."""
        ctx = make_context(race_network, rules={"race": "t1"})
        copy_nwattr_to_datattr(ctx)
        ctx.temp.t1_tab = get_attr_prop(ctx.attr, ["race"])
        # Population has since become all W
        ctx.attr.register("race", ["W"] * 10)
        new_ids, curr_tab = _add_entrants(ctx, 500)

        auto_update_attr(ctx, new_ids, curr_tab)

        assert "B" in set(ctx.attr["race"][10:])

    def test_fixed_value_rule(self, race_network, make_context):
        """Test that literal rules give all entrants the same value."""
        ctx = make_context(race_network, rules={"race": "H", "riskg": 3})
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 4)

        auto_update_attr(ctx, new_ids, curr_tab)

        assert ctx.attr["race"][10:].tolist() == ["H"] * 4
        assert ctx.attr["riskg"][10:].tolist() == [3] * 4

    def test_missing_initial_distribution(self, race_network, make_context):
        """Test that a t1 rule without a t1 snapshot fails."""
        ctx = make_context(race_network, rules={"race": "t1"})
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 2)

        with pytest.raises(DistributionUnavailable):
            auto_update_attr(ctx, new_ids, curr_tab)

    def test_empty_support(self, race_context):
        """Test that an empty distribution cannot be sampled."""
        ctx = race_context
        ctx.attr.register("age", np.full(10, np.nan))
        new_ids, curr_tab = _add_entrants(ctx, 2)

        with pytest.raises(DistributionUnavailable):
            auto_update_attr(ctx, new_ids, curr_tab)

    def test_complete_attributes_untouched(self, race_context):
        """Test that attributes already covering all members are skipped."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        new_ids, curr_tab = _add_entrants(ctx, 2)
        ctx.attr.append("age", [40.0, 41.0])

        updated = auto_update_attr(ctx, new_ids, curr_tab)

        assert "age" not in updated
        assert ctx.attr["age"][-2:].tolist() == [40.0, 41.0]

    def test_single_batch_per_step(self, race_context):
        """Test that two unprocessed entrant batches are rejected."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        _add_entrants(ctx, 2)
        new_ids, curr_tab = _add_entrants(ctx, 3)

        with pytest.raises(ValueError):
            auto_update_attr(ctx, new_ids, curr_tab)

    def test_reproducible_with_seed(self, race_network, make_context):
        """Test that the same seed draws the same entrant attributes."""
        draws = []
        for _ in range(2):
            nw = race_network
            ctx = make_context(nw, seed=7)
            copy_nwattr_to_datattr(ctx)
            curr_tab = get_attr_prop(ctx.attr, ["race"])
            new_ids = ctx.attr.append_members(20, 2)
            auto_update_attr(ctx, new_ids, curr_tab)
            draws.append(ctx.attr["race"][10:].tolist())
        assert draws[0] == draws[1]
