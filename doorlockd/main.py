#!/usr/bin/env python3
"""
doorlockd - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the door, credential verifier, token sinks and logic
3. Runs the HTTP server that hands request payloads to the logic

All authorization logic is in the modules.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import click
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from doorlockd import __version__
from doorlockd.config.provider import ConfigProvider, get_config_provider
from doorlockd.logging_config import get_logging_config
from doorlockd.modules.api import ActionResponse, Response
from doorlockd.modules.auth import AuthFactory
from doorlockd.modules.door import create_door
from doorlockd.modules.logic import Logic
from doorlockd.modules.notify import build_sink

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    Response.SUCCESS: 200,
    Response.ALREADY_LOCKED: 200,
    Response.ALREADY_UNLOCKED: 200,
    Response.NOT_JSON: 400,
    Response.JSON_ERROR: 400,
    Response.UNKNOWN_ACTION: 400,
    Response.INVALID_TOKEN: 401,
    Response.INVALID_CREDENTIALS: 401,
    Response.SERVICE_INIT_ERROR: 503,
    Response.FAIL: 500,
}


def build_logic(config_provider: ConfigProvider):
    """
    Wire the collaborators into a Logic instance.

    Returns:
        Tuple of (logic, sink, door) so the caller can release them
    """
    logic_config = config_provider.get_logic_config()
    ldap_config = config_provider.get_ldap_config()

    verifier = AuthFactory.build(ldap_config)
    door = create_door(config_provider.get_door_config())

    try:
        sink = build_sink(config_provider.get_notify_config())
    except Exception:
        _close_resources(door)
        raise

    try:
        logic = Logic(
            door,
            verifier,
            ldap_config.identity_template,
            logic_config.token_timeout,
            logic_config.web_prefix,
            sink=sink,
        )
    except Exception:
        _close_resources(sink, door)
        raise
    return logic, sink, door


def _close_resources(*resources) -> None:
    for resource in resources:
        if hasattr(resource, "close"):
            resource.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    logger.info("Starting doorlockd...")

    config_provider = app.state.config_provider or get_config_provider()
    logic, sink, door = build_logic(config_provider)
    logic.start()
    app.state.logic = logic

    logger.info("doorlockd started successfully")

    yield

    # Shutdown
    logger.info("Shutting down doorlockd...")
    app.state.logic = None

    # Both block: joining the rotation thread waits for the logic lock
    await run_in_threadpool(logic.shutdown)
    await run_in_threadpool(_close_resources, sink, door)
    logger.info("doorlockd shutdown complete")


def create_app(config_provider: Optional[ConfigProvider] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config_provider: Configuration source; resolved at startup if omitted
    """
    app = FastAPI(
        title="doorlockd",
        description="Door access control with rotating tokens",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config_provider = config_provider
    app.state.logic = None

    def get_logic(request: Request) -> Logic:
        logic = request.app.state.logic
        if logic is None:
            raise HTTPException(503, "Service not initialized")
        return logic

    @app.post("/", response_model=ActionResponse)
    @app.post("/api/request", response_model=ActionResponse)
    async def handle_request(request: Request):
        """
        Lock or unlock the door.

        The raw body is handed to the logic untouched so that malformed
        JSON is reported with its own response code.
        """
        logic = get_logic(request)
        body = await request.body()

        # Blocks on the logic lock, the credential service and the actuator
        response = await run_in_threadpool(logic.parse_request, body)

        client = request.client.host if request.client else "unknown"
        logger.info(f"Request from {client} answered with {response.name}")

        return JSONResponse(
            status_code=HTTP_STATUS.get(response, 500),
            content=ActionResponse.from_response(response).model_dump(),
        )

    @app.get("/api/state")
    async def door_state(request: Request):
        """Current door state."""
        logic = get_logic(request)
        state = await run_in_threadpool(lambda: logic.door_state)
        return {"state": state.value}

    @app.get("/healthz")
    async def healthz():
        """Minimal health check endpoint for liveness checks."""
        return {"status": "ok"}

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            200: Service healthy
            503: Service unhealthy
        """
        logic = request.app.state.logic
        if logic is None or not logic.tokens.running:
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "token_rotation": "stopped"},
            )

        return {"status": "healthy", "token_rotation": "running", "version": __version__}

    return app


app = create_app()


@click.command()
@click.option("--config", "config_path", default=None, help="YAML configuration file")
@click.option("--host", "host", default=None, help="Bind address")
@click.option("--port", "port", default=None, type=int, help="Bind port")
def main(config_path: Optional[str], host: Optional[str], port: Optional[int]):
    config_provider = get_config_provider(config_path)
    api_config = config_provider.get_api_config()

    logging_config = get_logging_config(api_config.log_level)
    log_config.dictConfig(logging_config)

    uvicorn.run(
        create_app(config_provider),
        host=host or api_config.host,
        port=port or api_config.port,
        log_level=api_config.log_level.lower(),
        log_config=logging_config,
    )


if __name__ == "__main__":
    main()
