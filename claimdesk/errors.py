from __future__ import annotations


class ClaimDeskError(Exception):
    """Base class for ClaimDesk errors."""


class ServiceError(ClaimDeskError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClaimNotFound(ClaimDeskError):
    pass


class ConfirmationNotFound(ClaimDeskError):
    pass


class FormValidationError(ClaimDeskError):
    pass
