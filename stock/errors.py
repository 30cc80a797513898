class StockError(Exception):
    """Base class for business-rule failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StockError):
    """Invalid input. ``errors`` maps field name to a list of messages."""

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]}, message)


class NotFoundError(StockError):
    def __init__(self, entity: str, entity_id: str | None):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StateError(StockError):
    """Operation not allowed in the entity's current state."""
