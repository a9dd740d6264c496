"""Organization errors."""


class OrganizeError(Exception):
    """Base exception for organize passes."""


class PermissionDeniedError(OrganizeError):
    """Raised when read-write access to the source folder is refused."""
