"""
Custom Exceptions

Application-specific exceptions with proper error codes and messages.
"""

from typing import Optional, Any


class TempAliasException(Exception):
    """
    Base exception for all TempAlias errors.
    """
    
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        detail: Optional[Any] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.detail = detail
        super().__init__(self.message)


class StorageError(TempAliasException):
    """
    Raised when the alias database cannot be read or written.
    """
    
    def __init__(self, message: str = "Database operation failed", detail: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="storage_error",
            detail=detail,
        )


class ProviderError(TempAliasException):
    """
    Raised when a Cloudflare call fails in transport or reports failure.
    """
    
    UNKNOWN = "unknown provider error"
    
    def __init__(
        self,
        message: Optional[str] = None,
        provider_status: Optional[int] = None,
        detail: Optional[Any] = None,
    ):
        self.provider_status = provider_status
        super().__init__(
            message=message or self.UNKNOWN,
            status_code=500,
            error_code="provider_error",
            detail=detail,
        )


class AliasNotFound(TempAliasException):
    """
    Raised when an alias id does not exist.
    """
    
    def __init__(self, alias_id: int, detail: Optional[Any] = None):
        self.alias_id = alias_id
        super().__init__(
            message=f"Alias not found: {alias_id}",
            status_code=404,
            error_code="alias_not_found",
            detail=detail,
        )


class InvalidTransition(TempAliasException):
    """
    Raised when an operation is not allowed from the alias's current status.
    """
    
    def __init__(self, alias_id: int, status: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} alias {alias_id} while {status}",
            status_code=409,
            error_code="invalid_transition",
            detail={"alias_id": alias_id, "status": status, "operation": operation},
        )
