"""
Compatibility matrix for UN hazard compatibility groups.

Pure lookup, no database access. The relation is read forward
only: the incoming product's group decides which occupant groups
it may join. Group A joins nothing; group S joins nearly
everything.
"""

from dataclasses import dataclass, field

from explosives_inventory.models.enums import CompatibilityGroup as G


_MIXED_ARTICLES = frozenset({G.C, G.D, G.E, G.G, G.S})

COMPATIBILITY_MATRIX: dict[G, frozenset[G]] = {
    G.A: frozenset(),
    G.B: frozenset({G.B, G.S}),
    G.C: _MIXED_ARTICLES,
    G.D: _MIXED_ARTICLES,
    G.E: _MIXED_ARTICLES,
    G.F: frozenset({G.F, G.S}),
    G.G: _MIXED_ARTICLES,
    G.H: frozenset({G.H, G.S}),
    G.J: frozenset({G.J, G.S}),
    G.K: frozenset({G.K, G.S}),
    G.L: frozenset({G.L, G.S}),
    G.N: frozenset({G.N, G.S}),
    G.S: frozenset(set(G) - {G.A}),
}


@dataclass(frozen=True)
class Occupant:
    """A product currently held (positive balance) in a magazine."""
    name: str
    group: G


@dataclass(frozen=True)
class CompatibilityResult:
    compatible: bool
    conflicts: list[str] = field(default_factory=list)
    reason: str | None = None


def can_coexist(incoming: G, occupant: G) -> bool:
    return occupant in COMPATIBILITY_MATRIX[incoming]


def check_compatibility(
    incoming: G, occupants: list[Occupant]
) -> CompatibilityResult:
    """
    Decide whether a product of group `incoming` may join `occupants`.

    An empty magazine accepts any group.
    """
    conflicts = [
        f"{o.name} (Group {o.group.value})"
        for o in occupants
        if not can_coexist(incoming, o.group)
    ]
    if not conflicts:
        return CompatibilityResult(compatible=True)
    return CompatibilityResult(
        compatible=False,
        conflicts=conflicts,
        reason=(
            f"Compatibility Group {incoming.value} cannot be stored with: "
            f"{', '.join(conflicts)}"
        ),
    )
