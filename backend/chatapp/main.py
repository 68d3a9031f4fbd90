# backend/chatapp/main.py
"""
Chat backend application.

Wires the HTTP routers, the WebSocket endpoint and the realtime stack:
one SessionRegistry per worker, a transport feeding it, and the
FanoutRouter that routes publish through. All three live on `app.state`.
"""

from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncGenerator, Dict

from broadcaster import Broadcast
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .core.broadcast import connect_broadcast, disconnect_broadcast
from .core.config import is_running_tests, settings
from .database import SessionLocal, init_db
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes import chat_rooms, messages, realtime, users
from .services.messaging.fanout import FanoutRouter
from .services.messaging.session_registry import SessionRegistry
from .services.messaging.transport import BroadcastTransport, LocalTransport

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def _release_broadcast(broadcast: Broadcast) -> None:
    try:
        await disconnect_broadcast(broadcast)
    except Exception as e:
        logger.error(f"[BROADCAST] Error disconnecting broadcaster: {e}")


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"Chat backend starting up (environment: {settings.environment})")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    init_db()

    registry = SessionRegistry()
    app.state.session_registry = registry

    broadcast = None
    transport: Any
    try:
        broadcast = await connect_broadcast(settings.broadcast_url)
        transport = BroadcastTransport(broadcast, registry, settings.broadcast_channel)
        await transport.start()
    except Exception as e:
        # Fall back to in-process delivery
        logger.error(f"[BROADCAST] Failed to initialize broadcaster, using local delivery: {e}")
        if broadcast is not None:
            await _release_broadcast(broadcast)
        broadcast = None
        transport = LocalTransport(registry)

    app.state.fanout = FanoutRouter(transport)

    yield

    logger.info("Chat backend shutting down...")
    if isinstance(transport, BroadcastTransport):
        await transport.stop()
    if broadcast is not None:
        await _release_broadcast(broadcast)


app = FastAPI(
    title="Chat Backend",
    description="Realtime chat: users, rooms, direct messages, reactions and live fan-out",
    version="1.0.0",
    lifespan=app_lifespan,
)

register_error_handlers(app)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    # Browsers reject credentials with a wildcard origin
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(users.router, prefix="/api/users")
app.include_router(chat_rooms.router, prefix="/api/chatrooms")
app.include_router(messages.router, prefix="/api/messages")
app.include_router(realtime.router)


@app.get("/")
def health() -> Dict[str, str]:
    database = "Connected"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Health check database query failed: {e}")
        database = "Disconnected"
    finally:
        db.close()
    return {"message": "Chat App Backend is running!", "database": database}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
