"""
Tests for copying attributes between the network and the attribute table.
"""

import numpy as np
import pytest

from pop_net_simulator.exceptions import MissingAttribute
from pop_net_simulator.sync import (
    copy_datattr_to_nwattr,
    copy_nwattr_to_datattr,
    required_attributes
)


class TestCopyNetworkToTable:
    """Test suite for copy_nwattr_to_datattr."""

    def test_copies_attributes(self, race_context):
        """Test that vertex attributes land on the table."""
        copied = copy_nwattr_to_datattr(race_context)

        assert copied == ["race", "riskg", "age"]
        assert race_context.attr["race"].tolist() == ["B"] * 4 + ["W"] * 6
        np.testing.assert_array_equal(race_context.attr["age"],
                                      np.arange(20, 30))

    def test_reserved_fields_skipped(self, race_context):
        """Test that network bookkeeping is not copied."""
        copy_nwattr_to_datattr(race_context)
        assert "pid" not in race_context.attr

    def test_epi_by_values(self, race_network, make_context):
        """Test that values of the reporting attribute are recorded."""
        ctx = make_context(race_network, epi_by="race")
        copy_nwattr_to_datattr(ctx)
        assert list(ctx.temp.epi_by_vals) == ["B", "W"]

    def test_epi_by_unset(self, race_context):
        """Test that nothing is recorded without a reporting attribute."""
        copy_nwattr_to_datattr(race_context)
        assert race_context.temp.epi_by_vals is None


class TestCopyTableToNetwork:
    """Test suite for copy_datattr_to_nwattr."""

    def test_only_required_fields(self, race_context):
        """Test that only model terms and status are written."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        ctx.temp.nwterms = ["race"]
        ctx.attr.register("status", ["s"] * 10)
        ctx.attr.register("race", ["W"] * 10)
        ctx.attr.register("age", np.zeros(10))

        copied = copy_datattr_to_nwattr(ctx)

        assert copied == ["race", "status"]
        assert ctx.nw.get_vertex_attribute("race").tolist() == ["W"] * 10
        assert ctx.nw.get_vertex_attribute("status").tolist() == ["s"] * 10
        assert ctx.nw.get_vertex_attribute("age")[0] == 20.0
        assert "entry_time" not in ctx.nw.vertex_attribute_names()

    def test_group_in_two_group_models(self, two_group_network,
                                       make_context):
        """Test that group is written when there are two groups."""
        ctx = make_context(two_group_network, groups=2)
        copy_nwattr_to_datattr(ctx)
        ctx.attr.register("status", ["s"] * 8)

        assert required_attributes(ctx) == ["status", "group"]
        assert copy_datattr_to_nwattr(ctx) == ["status", "group"]

    def test_missing_required(self, race_context):
        """Test that a required field absent from the table is an error."""
        ctx = race_context
        ctx.temp.nwterms = ["race"]
        with pytest.raises(MissingAttribute):
            copy_datattr_to_nwattr(ctx)

    def test_round_trip_unchanged(self, race_context):
        """Test that copying out then in leaves the table unchanged."""
        ctx = race_context
        copy_nwattr_to_datattr(ctx)
        ctx.temp.nwterms = ["race", "riskg"]
        ctx.attr.register("status", ["s"] * 10)
        before = {name: ctx.attr[name].copy() for name in ctx.attr}

        copy_datattr_to_nwattr(ctx)
        copy_nwattr_to_datattr(ctx)

        for name, values in before.items():
            np.testing.assert_array_equal(ctx.attr[name], values)
