"""
Tests for the compatibility matrix.

Pure lookups, no database needed.
"""

import pytest

from explosives_inventory.models.enums import CompatibilityGroup as G
from explosives_inventory.services.compatibility import (
    COMPATIBILITY_MATRIX,
    Occupant,
    can_coexist,
    check_compatibility,
)


class TestMatrix:

    def test_every_group_has_a_row(self):
        assert set(COMPATIBILITY_MATRIX) == set(G)

    def test_group_a_joins_nothing(self):
        for group in G:
            assert can_coexist(G.A, group) is False

    def test_mixed_articles_share(self):
        for incoming in (G.C, G.D, G.E, G.G):
            for occupant in (G.C, G.D, G.E, G.G, G.S):
                assert can_coexist(incoming, occupant)

    def test_group_s_joins_everything_but_a(self):
        assert not can_coexist(G.S, G.A)
        for group in set(G) - {G.A}:
            assert can_coexist(G.S, group)

    def test_b_does_not_join_d(self):
        assert can_coexist(G.B, G.B)
        assert not can_coexist(G.B, G.D)


class TestCheckCompatibility:

    @pytest.mark.parametrize("group", list(G))
    def test_empty_magazine_accepts_every_group(self, group):
        result = check_compatibility(group, [])
        assert result.compatible is True
        assert result.conflicts == []

    def test_conflicts_are_named(self):
        occupants = [
            Occupant(name="Detonators", group=G.B),
            Occupant(name="Safety Fuse", group=G.S),
        ]
        result = check_compatibility(G.D, occupants)

        assert result.compatible is False
        assert result.conflicts == ["Detonators (Group B)"]
        assert "Group D" in result.reason

    def test_compatible_occupants(self):
        occupants = [Occupant(name="Boosters", group=G.D)]
        assert check_compatibility(G.E, occupants).compatible is True

    def test_group_a_conflicts_with_itself(self):
        occupants = [Occupant(name="Lead Azide", group=G.A)]
        assert check_compatibility(G.A, occupants).compatible is False
