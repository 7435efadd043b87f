"""REST API routes."""
import uuid
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from ..engine.datasets import SAMPLE_DATASETS
from ..engine.errors import ConfigError, NodeNotFoundError, StructuralError
from ..engine.session import NetworkSession, create_session, get_session, remove_session
from ..models.schemas import (
    ConnectionSchema, CreateLayerRequest, CreateLayerResponse,
    LayerDefinitionResponse, NetworkResponse, OutputShapeRequest,
    SummaryResponse, UpdateConfigRequest, ValidationResponse,
)
from ..nodes.registry import LayerRegistry
from .websocket import manager

router = APIRouter(prefix="/api")


def _get_session(network_id: str) -> NetworkSession:
    session = get_session(network_id)
    if not session:
        raise HTTPException(status_code=404, detail="Network not found")
    return session


def _http_error(exc: Exception) -> HTTPException:
    """Map a domain error raised by a network command to an HTTP error."""
    if isinstance(exc, StructuralError):
        return HTTPException(status_code=409, detail={
            "kind": exc.kind.value, "message": exc.message,
        })
    if isinstance(exc, ConfigError):
        return HTTPException(status_code=422, detail={"errors": exc.errors})
    if isinstance(exc, KeyError):
        # NodeNotFoundError, unknown kind, unknown connection
        return HTTPException(status_code=404, detail=str(exc.args[0]))
    return HTTPException(status_code=400, detail=str(exc))


def _network_response(session: NetworkSession) -> NetworkResponse:
    return NetworkResponse(id=session.network_id, snapshot=session.network.get_snapshot())


@router.get("/layers")
async def list_layers() -> dict[str, LayerDefinitionResponse]:
    """Return all registered layer definitions."""
    return {
        kind: LayerDefinitionResponse(**asdict(defn))
        for kind, defn in LayerRegistry.all_definitions().items()
    }


@router.get("/datasets")
async def list_datasets():
    return {key: ds.to_dict() for key, ds in SAMPLE_DATASETS.items()}


@router.post("/networks", response_model=NetworkResponse)
async def create_network():
    session = create_session(str(uuid.uuid4()))
    return _network_response(session)


@router.get("/networks/{network_id}", response_model=NetworkResponse)
async def get_network(network_id: str):
    return _network_response(_get_session(network_id))


@router.delete("/networks/{network_id}")
async def delete_network(network_id: str):
    _get_session(network_id)
    remove_session(network_id)
    return {"status": "deleted"}


@router.post("/networks/{network_id}/clear", response_model=NetworkResponse)
async def clear_network(network_id: str):
    session = _get_session(network_id)
    session.network.clear()
    await manager.flush(session)
    return _network_response(session)


@router.post("/networks/{network_id}/layers", response_model=CreateLayerResponse)
async def create_layer(network_id: str, request: CreateLayerRequest):
    session = _get_session(network_id)
    try:
        layer_id = session.network.create_node(request.kind, request.config, dataset=request.dataset)
    except (ConfigError, KeyError) as e:
        raise _http_error(e)
    await manager.flush(session)
    return CreateLayerResponse(id=layer_id, snapshot=session.network.get_snapshot())


@router.patch("/networks/{network_id}/layers/{layer_id}", response_model=NetworkResponse)
async def update_layer(network_id: str, layer_id: str, request: UpdateConfigRequest):
    session = _get_session(network_id)
    try:
        session.network.update_config(layer_id, request.config)
    except (ConfigError, NodeNotFoundError) as e:
        raise _http_error(e)
    await manager.flush(session)
    return _network_response(session)


@router.put("/networks/{network_id}/layers/{layer_id}/output-shape", response_model=NetworkResponse)
async def set_output_shape(network_id: str, layer_id: str, request: OutputShapeRequest):
    session = _get_session(network_id)
    try:
        session.network.override_output_shape(layer_id, request.shape)
    except (ConfigError, NodeNotFoundError) as e:
        raise _http_error(e)
    await manager.flush(session)
    return _network_response(session)


@router.delete("/networks/{network_id}/layers/{layer_id}", response_model=NetworkResponse)
async def delete_layer(network_id: str, layer_id: str):
    session = _get_session(network_id)
    try:
        session.network.delete_node(layer_id)
    except NodeNotFoundError as e:
        raise _http_error(e)
    await manager.flush(session)
    return _network_response(session)


@router.post("/networks/{network_id}/connections", response_model=NetworkResponse)
async def connect_layers(network_id: str, request: ConnectionSchema):
    session = _get_session(network_id)
    try:
        session.network.connect(request.source, request.target)
    except (StructuralError, NodeNotFoundError) as e:
        raise _http_error(e)
    await manager.flush(session)
    return _network_response(session)


@router.delete("/networks/{network_id}/connections/{source}/{target}", response_model=NetworkResponse)
async def disconnect_layers(network_id: str, source: str, target: str):
    session = _get_session(network_id)
    try:
        session.network.disconnect(source, target)
    except KeyError as e:
        raise _http_error(e)
    await manager.flush(session)
    return _network_response(session)


@router.get("/networks/{network_id}/validate", response_model=ValidationResponse)
async def validate_network(network_id: str):
    session = _get_session(network_id)
    return session.network.validate().to_dict()


@router.get("/networks/{network_id}/summary", response_model=SummaryResponse)
async def network_summary(network_id: str, batch_size: int | None = None):
    session = _get_session(network_id)
    return session.network.summary(batch_size=batch_size).to_dict()
