from typing import Any, Dict, List, Optional


class ValidationException(Exception):
    """
    Raised when input fails its rule table.

    `message` is the first failure, ready to show a user; `errors` carries
    every failure keyed by field.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors: Dict[str, List[str]] = dict(errors or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class ConfigError(RuntimeError):
    """Entity configuration file is missing or malformed."""
