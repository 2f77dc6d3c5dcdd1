"""Model Configuration API Router.

CRUD routes are a 1:1 binding of ModelConfigService operations and every
response body is a masked view. The credential is accepted on writes and
never returned. The test route uses the prober alone.
"""
from typing import List

from fastapi import APIRouter, Depends

from veritas.dependencies import get_connectivity_prober, get_model_config_service
from veritas.domain.model_configs.models import (
    ModelConfigRequest,
    ModelConfigResponse,
    TestModelConfigRequest,
    TestModelConfigResponse,
)
from veritas.domain.model_configs.probe import ConnectivityProber, ProbeProfile
from veritas.domain.model_configs.service import ModelConfigService
from veritas.errors import ConfigError, raise_config_error

router = APIRouter()


@router.get("/model-configs", response_model=List[ModelConfigResponse])
def list_model_configs(service: ModelConfigService = Depends(get_model_config_service)):
    """List all model configurations (credentials masked)."""
    return service.list_configs()


@router.post("/model-configs/test", response_model=TestModelConfigResponse, response_model_exclude_none=True)
async def test_model_config(
    data: TestModelConfigRequest,
    prober: ConnectivityProber = Depends(get_connectivity_prober),
):
    """Test a model configuration without saving it.

    Always 200; the outcome is carried in `success`.
    """
    result = await prober.probe(ProbeProfile.from_request(data))
    return result.to_response()


@router.get("/model-configs/{config_id}", response_model=ModelConfigResponse)
def get_model_config(config_id: str, service: ModelConfigService = Depends(get_model_config_service)):
    """Get a single model configuration."""
    try:
        return service.get_config(config_id)
    except ConfigError as e:
        raise_config_error(e)


@router.post("/model-configs", response_model=ModelConfigResponse, status_code=201)
def create_model_config(
    data: ModelConfigRequest,
    service: ModelConfigService = Depends(get_model_config_service),
):
    """Create a model configuration. The API key is sealed before storage."""
    try:
        return service.create_config(data)
    except ConfigError as e:
        raise_config_error(e)


@router.put("/model-configs/{config_id}", response_model=ModelConfigResponse)
def update_model_config(
    config_id: str,
    data: ModelConfigRequest,
    service: ModelConfigService = Depends(get_model_config_service),
):
    """Replace every field of a model configuration."""
    try:
        return service.update_config(config_id, data)
    except ConfigError as e:
        raise_config_error(e)


@router.delete("/model-configs/{config_id}")
def delete_model_config(config_id: str, service: ModelConfigService = Depends(get_model_config_service)):
    """Delete a model configuration unless messages still reference it."""
    try:
        service.delete_config(config_id)
    except ConfigError as e:
        raise_config_error(e)
    return {"message": "Configuration deleted successfully"}
