"""ASGI entry point: the REST router, the change-event socket and CORS."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router
from .api.websocket import manager
from .config import settings
from .engine.session import get_session
from .log import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from . import nodes  # registers every layer kind
    logger.info("%s ready with layer kinds %s", settings.app_name,
                [k.value for k in nodes.LayerRegistry.kinds()])
    yield


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.add_api_websocket_route("/ws/networks/{network_id}", network_events)
    return app


async def network_events(websocket: WebSocket, network_id: str):
    """Send the current snapshot, then every change event, to one client."""
    session = get_session(network_id)
    if session is None:
        await websocket.close(code=4404)
        return
    await manager.connect(network_id, websocket)
    await websocket.send_json({
        "type": "network_snapshot",
        "network_id": network_id,
        "snapshot": session.network.get_snapshot(),
    })
    try:
        # clients only listen; incoming text is ignored
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(network_id, websocket)


app = create_app()


def run():
    import uvicorn
    uvicorn.run("netcanvas.main:app", host=settings.host, port=settings.port,
                reload=settings.debug)
