"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An unknown transaction type
or compatibility group is caught at the database level, not
just in Python validation.
"""

import enum


class TransactionType(str, enum.Enum):
    """The seven kinds of ledger movement."""
    RECEIPT = "RECEIPT"
    ISSUE = "ISSUE"
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    ADJUST_INCREASE = "ADJUST_INCREASE"
    ADJUST_DECREASE = "ADJUST_DECREASE"
    DESTRUCTION = "DESTRUCTION"


class MagazineSide(str, enum.Enum):
    """Which magazine reference a ledger entry populates."""
    FROM = "FROM"
    TO = "TO"


class CompatibilityGroup(str, enum.Enum):
    """UN hazard compatibility groups (letter I is not used)."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    H = "H"
    J = "J"
    K = "K"
    L = "L"
    N = "N"
    S = "S"


class ExplosiveType(str, enum.Enum):
    """Explosive classification used on the product catalog."""
    PRIMARY = "I"
    SECONDARY = "II"
    PROPELLANT = "III"
    BLASTING_AGENT = "B"


class UnitOfMeasure(str, enum.Enum):
    EACH = "each"
    KG = "kg"
    LB = "lb"
    BOX = "box"
    CASE = "case"


class AdjustmentDirection(str, enum.Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
