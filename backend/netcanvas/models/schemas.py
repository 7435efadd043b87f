"""Pydantic schemas for API request/response models."""
from typing import Any
from pydantic import BaseModel, StrictInt

from ..nodes.configs import LayerConfig


class CreateLayerRequest(BaseModel):
    kind: str
    config: dict[str, Any] = {}
    dataset: str | None = None


class UpdateConfigRequest(BaseModel):
    config: dict[str, Any]


class OutputShapeRequest(BaseModel):
    shape: list[StrictInt] | None = None


class ConnectionSchema(BaseModel):
    source: str
    target: str


class LayerSchema(BaseModel):
    id: str
    name: str
    kind: str
    config: LayerConfig
    input_shape: list[int] | None = None
    output_shape: list[int | None] | None = None
    output_shape_manual: bool = False
    parameter_count: int = 0
    parameters_pending: bool = True


class SnapshotSchema(BaseModel):
    layers: list[LayerSchema]
    connections: list[ConnectionSchema]


class NetworkResponse(BaseModel):
    id: str
    snapshot: SnapshotSchema


class CreateLayerResponse(BaseModel):
    id: str
    snapshot: SnapshotSchema


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str] = []


class LayerDefinitionResponse(BaseModel):
    kind: str
    display_name: str
    category: str
    description: str
    defaults: dict[str, Any]
    config_schema: dict[str, Any]
    allowed_targets: list[str]


class MemorySchema(BaseModel):
    parameters: int
    param_bytes: int
    activation_bytes: int
    total_bytes: int


class LayerSummarySchema(BaseModel):
    id: str
    name: str
    kind: str
    description: str
    output_shape: list[int | None] | None = None
    parameter_count: int
    parameters_pending: bool
    flops: int
    memory: MemorySchema


class SummaryResponse(BaseModel):
    layers: list[LayerSummarySchema]
    total_parameters: int
    total_flops: int
    total_memory_bytes: int
    complete: bool
