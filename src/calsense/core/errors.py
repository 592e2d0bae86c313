"""Errors raised by the engine."""


class InvalidRequestError(ValueError):
    """A request carried parameters the engine cannot act on."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_dict(self) -> dict:
        return {"error": "invalid_request", "field": self.field, "message": self.message}
