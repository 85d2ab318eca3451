"""
Domain exceptions.

Every rule violation raised by the services maps onto one of these classes.
They are converted to HTTP responses in one place
(see kanban.core.exception_handlers), so services never build HTTP errors.
"""
from typing import Dict, List, Optional


class DomainError(Exception):
    """Base class for all domain errors"""

    status_code: int = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    @property
    def errors(self) -> Dict[str, List[str]]:
        if self.field is None:
            return {}
        return {self.field: [self.message]}


class AuthorizationDenied(DomainError):
    """The acting user may not view or change the resource"""

    status_code = 403

    def __init__(self, message: str = "This action is unauthorized.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """A referenced entity does not exist"""

    status_code = 404

    def __init__(self, message: str = "Resource not found", field: Optional[str] = None) -> None:
        super().__init__(message, field)


class ValidationFailed(DomainError):
    """One or more field-scoped rule violations.

    All violations found during a check are collected before raising, so the
    client receives every message at once.
    """

    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid.") -> None:
        super().__init__(message)
        self._errors = {field: list(messages) for field, messages in errors.items()}

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self._errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls({field: [message]}, message=message)


class InvalidState(DomainError):
    """A business rule not tied to input shape, e.g. sharing a board with its owner"""

    status_code = 409
