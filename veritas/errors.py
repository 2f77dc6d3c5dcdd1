"""Error taxonomy for the model configuration subsystem."""
from fastapi import HTTPException
from typing import Optional, Dict, Any


class ConfigError(Exception):
    """Base error for configuration and credential operations.

    Every subclass carries a stable machine code and the HTTP status the
    API layer maps it to. Messages must never contain credential text,
    envelope text or key material.
    """
    code: str = "CONFIG_ERROR"
    status_code: int = 500
    default_message: str = "Configuration error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateName(ConfigError):
    code = "DUPLICATE_NAME"
    status_code = 409
    default_message = "A configuration with this name already exists"


class DefaultConflict(ConfigError):
    """Another writer marked a different configuration as default concurrently."""
    code = "DEFAULT_CONFLICT"
    status_code = 409
    default_message = "Another configuration was marked as default concurrently"


class NotFound(ConfigError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Configuration not found"


class InUse(ConfigError):
    code = "IN_USE"
    status_code = 400
    default_message = "Cannot delete configuration that is referenced by messages"


class CheckFailed(ConfigError):
    code = "CHECK_FAILED"
    status_code = 500
    default_message = "Failed to check configuration usage"


class InvalidCredential(ConfigError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "An API key is required for this provider"


class MalformedEnvelope(ConfigError):
    code = "MALFORMED_ENVELOPE"
    status_code = 500
    default_message = "Stored credential is not a valid envelope"


class DecryptionFailed(ConfigError):
    code = "DECRYPTION_FAILED"
    status_code = 500
    default_message = "Stored credential failed authentication"


class KeyUnavailable(ConfigError):
    """Master key missing or invalid. Fatal at startup."""
    code = "KEY_UNAVAILABLE"
    status_code = 500
    default_message = "Encryption key is not available"


def error_body(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"code": code, "message": message}
    if details:
        body["details"] = details
    return {"error": body}


def raise_veritas_error(
    code: str,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Raise a standardized HTTPException.

    Args:
        code: Error code (NOT_FOUND, DUPLICATE_NAME, etc.)
        status_code: HTTP Status Code
        message: Human readable message
        details: Optional extra details
    """
    raise HTTPException(status_code=status_code, detail=error_body(code, message, details))


def raise_config_error(exc: ConfigError) -> None:
    """Translate a ConfigError into the standard HTTP error."""
    raise_veritas_error(exc.code, exc.status_code, exc.message)
