class InventoryError(Exception):
    """Base class for failures raised by the inventory services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(InventoryError):
    def __init__(self, kind: str, entity_id: int):
        super().__init__(f"{kind} not found (id={entity_id})")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(InventoryError):
    """The operation would break a business rule; nothing was written."""
