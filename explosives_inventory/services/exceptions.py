"""Service layer exception classes.

Every rejection raised by the services is detected before any
row is written. Each exception carries the structured values a
caller needs to render a precise message, and the HTTP status
the API layer should answer with.

Exception Hierarchy:
    InventoryError
    ├── ValidationError
    ├── NotFound
    │   ├── MagazineNotFound
    │   ├── ProductNotFound
    │   ├── TransactionNotFound
    │   └── ReconciliationNotFound
    ├── DuplicateKey
    ├── CapacityExceeded
    ├── CompatibilityConflict
    ├── InsufficientStock
    ├── InvalidTransfer
    ├── DuplicateUnresolvedReconciliation
    ├── AlreadyResolved
    └── ReferentialIntegrityError
"""

from decimal import Decimal
from typing import Any


class InventoryError(Exception):
    """Base exception for all service layer errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def fields(self) -> dict[str, Any]:
        """Structured values specific to the error kind."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, **self.fields()}


class ValidationError(InventoryError):
    """Raised when input fails a business validation rule."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        super().__init__(f"Validation failed: {'; '.join(errors)}")

    def fields(self) -> dict[str, Any]:
        return {"errors": self.errors}


class NotFound(InventoryError):
    status_code = 404
    entity = "Entity"

    def __init__(self, entity_id: Any):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with id {entity_id} not found")

    def fields(self) -> dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class MagazineNotFound(NotFound):
    entity = "Magazine"


class ProductNotFound(NotFound):
    entity = "Product"


class TransactionNotFound(NotFound):
    entity = "Transaction"


class ReconciliationNotFound(NotFound):
    entity = "Reconciliation"


class DuplicateKey(InventoryError):
    """Raised when a unique business key is already taken."""

    status_code = 409

    def __init__(self, entity: str, field: str, value: str):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} {field} '{value}' already exists")

    def fields(self) -> dict[str, Any]:
        return {"entity": self.entity, "field": self.field, "value": self.value}


class CapacityExceeded(InventoryError):
    """Raised when an addition would push a magazine over its NEW limit.

    Args:
        current: Net explosive weight currently stored (kg)
        maximum: The magazine's configured maximum (kg)
        attempted: The total that the addition would have produced (kg)
    """

    status_code = 409

    def __init__(
        self,
        magazine_code: str,
        current: Decimal,
        maximum: Decimal,
        attempted: Decimal,
    ):
        self.magazine_code = magazine_code
        self.current = current
        self.maximum = maximum
        self.attempted = attempted
        super().__init__(
            f"Magazine {magazine_code} capacity exceeded. "
            f"Current: {current}kg, Max: {maximum}kg, "
            f"Attempted: {attempted}kg"
        )

    def fields(self) -> dict[str, Any]:
        return {
            "magazine_code": self.magazine_code,
            "current": str(self.current),
            "maximum": str(self.maximum),
            "attempted": str(self.attempted),
        }


class CompatibilityConflict(InventoryError):
    """Raised when a product may not share a magazine with its occupants."""

    status_code = 409

    def __init__(self, product_group: str, conflicts: list[str]):
        self.product_group = product_group
        self.conflicts = conflicts
        super().__init__(
            f"Compatibility Group {product_group} cannot be stored with: "
            f"{', '.join(conflicts)}"
        )

    def fields(self) -> dict[str, Any]:
        return {"product_group": self.product_group, "conflicts": self.conflicts}


class InsufficientStock(InventoryError):
    """Raised when a decrease asks for more than the magazine holds."""

    status_code = 409

    def __init__(
        self,
        available: Decimal,
        required: Decimal,
        product_name: str = "",
        magazine_code: str = "",
    ):
        self.available = available
        self.required = required
        self.product_name = product_name
        self.magazine_code = magazine_code
        super().__init__(
            f"Insufficient stock. Available: {available}, "
            f"Required: {required} "
            f"(Product: {product_name}, Magazine: {magazine_code})"
        )

    def fields(self) -> dict[str, Any]:
        return {
            "available": str(self.available),
            "required": str(self.required),
        }


class InvalidTransfer(InventoryError):
    def __init__(self, magazine_id: int):
        self.magazine_id = magazine_id
        super().__init__(
            "Source and destination magazines cannot be the same"
        )

    def fields(self) -> dict[str, Any]:
        return {"magazine_id": self.magazine_id}


class DuplicateUnresolvedReconciliation(InventoryError):
    status_code = 409

    def __init__(self, existing_id: int | None):
        self.existing_id = existing_id
        super().__init__(
            "There is already an unresolved reconciliation for this "
            "magazine and product combination. Resolve it before "
            "creating a new one."
        )

    def fields(self) -> dict[str, Any]:
        return {"existing_id": self.existing_id}


class AlreadyResolved(InventoryError):
    status_code = 409

    def __init__(self, reconciliation_id: int):
        self.reconciliation_id = reconciliation_id
        super().__init__(
            f"Reconciliation {reconciliation_id} is already resolved"
        )

    def fields(self) -> dict[str, Any]:
        return {"reconciliation_id": self.reconciliation_id}


class ReferentialIntegrityError(InventoryError):
    """Raised when deleting a record that the ledger still references."""

    status_code = 409

    def __init__(self, entity: str, entity_id: int, references: int):
        self.entity = entity
        self.entity_id = entity_id
        self.references = references
        super().__init__(
            f"Cannot delete {entity.lower()} {entity_id} with transaction "
            f"history ({references} ledger entries). Archive it instead."
        )

    def fields(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "entity_id": self.entity_id,
            "references": self.references,
        }
