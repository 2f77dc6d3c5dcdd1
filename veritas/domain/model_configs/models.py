"""Model configuration request/response schemas."""
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Local providers that accept requests without a credential.
KEYLESS_PROVIDERS = frozenset(["ollama"])

# Credentials travel in an HTTP header: visible ASCII only, no whitespace.
API_KEY_PATTERN = r"^[\x21-\x7e]*$"


def requires_api_key(provider: str) -> bool:
    return (provider or "").strip().lower() not in KEYLESS_PROVIDERS


class ModelConfigRequest(BaseModel):
    """Body for create and update (full replace)."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    name: str = Field(..., min_length=1, max_length=255)
    provider: str = Field(..., min_length=1, max_length=50)
    base_url: str = Field(default="", alias="baseUrl", max_length=512)
    model_id: str = Field(..., alias="modelId", min_length=1, max_length=255)
    api_key: str = Field(default="", alias="apiKey", pattern=API_KEY_PATTERN, repr=False)
    is_default: bool = Field(default=False, alias="isDefault")


class ModelConfigResponse(BaseModel):
    """Client-safe view of a configuration. Has no credential field."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=(), frozen=True)

    id: str
    name: str
    provider: str
    base_url: str = Field(default="", alias="baseUrl")
    model_id: str = Field(..., alias="modelId")
    is_default: bool = Field(default=False, alias="isDefault")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class TestModelConfigRequest(BaseModel):
    """Transient probe profile. Never persisted."""
    __test__ = False
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    base_url: str = Field(default="", alias="baseUrl", max_length=512)
    model_id: str = Field(..., alias="modelId", min_length=1, max_length=255)
    api_key: str = Field(..., alias="apiKey", pattern=API_KEY_PATTERN, repr=False)


class TestModelConfigResponse(BaseModel):
    __test__ = False
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    details: Optional[Dict[str, str]] = None
    error_details: Optional[str] = Field(default=None, alias="errorDetails")
