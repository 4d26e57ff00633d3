#!/usr/bin/env python3
"""
Kubeguard - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the pod watcher, the command channel and the HTTP callback API

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kubeguard import __version__
from kubeguard.logging_config import get_logging_config
from kubeguard.modules.api import CommandKind, ImagesResponse, SafeModeNotification, WorkloadsResponse
from kubeguard.modules.config import ConfigModule, get_config
from kubeguard.modules.executor import CommandRouter, SSECommandAgent, logging_executor
from kubeguard.modules.k8s import KubernetesClusterAccessor
from kubeguard.modules.resolver import CommandResolver, get_command_policy
from kubeguard.modules.watcher import WatchHandler

logger = logging.getLogger("kubeguard.main")


@dataclass
class Components:
    """Module instances wired together at startup."""

    watcher: WatchHandler
    resolver: CommandResolver
    router: CommandRouter
    agent: Optional[SSECommandAgent] = None


def build_components(config: ConfigModule) -> Components:
    """Create and wire module instances from configuration."""
    accessor = KubernetesClusterAccessor(
        max_owner_depth=config.get("max_owner_depth"),
        watch_timeout_seconds=config.get("watch_timeout_seconds"),
    )
    policy = get_command_policy(
        agent_namespace=config.get("agent_namespace"),
        config_path=config.get("policy_config_path"),
    )
    watcher = WatchHandler(
        accessor,
        cluster_name=config.get("cluster_name"),
        resync_backoff_seconds=config.get("resync_backoff_seconds"),
    )
    resolver = CommandResolver(accessor, policy, cluster_name=config.get("cluster_name"), watcher=watcher)

    # Concrete executors are registered by deployments; default to recording targets
    router = CommandRouter(resolver)
    for kind in CommandKind:
        router.register(kind, logging_executor)

    agent = None
    if config.get("backend_url"):
        agent = SSECommandAgent(
            router,
            backend_url=config.get("backend_url"),
            cluster_name=config.get("cluster_name"),
            token=config.get("token"),
            verify_ssl=config.get("ssl_verify"),
            ca_cert_path=config.get("ca_cert_path"),
        )
    else:
        logger.warning("KUBEGUARD_BACKEND_URL not set, command channel disabled")

    return Components(watcher=watcher, resolver=resolver, router=router, agent=agent)


def create_app(components: Components, start_background: bool = True) -> FastAPI:
    """
    Create the HTTP callback API.

    Args:
        components: Wired module instances
        start_background: Start the watcher and command channel with the app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Kubeguard agent...")
        if start_background:
            components.watcher.start()
            if components.agent:
                threading.Thread(target=components.agent.run, daemon=True, name="sse-agent").start()
        logger.info("Kubeguard agent started successfully")

        yield

        logger.info("Shutting down Kubeguard agent...")
        if start_background:
            if components.agent:
                components.agent.stop()
            components.watcher.stop(timeout=5)
        logger.info("Kubeguard agent shutdown complete")

    app = FastAPI(title="Kubeguard Agent", version=__version__, lifespan=lifespan)
    app.state.components = components

    @app.get("/healthz")
    async def healthz():
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/health")
    async def health_check():
        """Health with map sizes."""
        watcher = components.watcher
        return {
            "status": "healthy",
            "version": __version__,
            "images": len(watcher.get_image_ids_to_wlids()),
            "workloads": len(watcher.get_wlids_to_container_image_ids()),
            "command_channel": components.agent is not None,
        }

    @app.get("/v1/images", response_model=ImagesResponse)
    async def get_images():
        """Image id -> WLIDs currently running it."""
        return ImagesResponse(images=components.watcher.get_image_ids_to_wlids())

    @app.get("/v1/workloads", response_model=WorkloadsResponse)
    async def get_workloads():
        """WLID -> container -> image id."""
        return WorkloadsResponse(workloads=components.watcher.get_wlids_to_container_image_ids())

    @app.post("/v1/safeMode")
    async def safe_mode(notification: SafeModeNotification):
        """Receive a safe mode notification from an instrumented container."""
        logger.info(
            f"SafeMode received: pod {notification.namespace}/{notification.pod_name}, "
            f"container {notification.container_name or '-'}, instance {notification.instance_id}, "
            f"status {notification.status_code}: {notification.message}"
        )
        return "ok"

    @app.exception_handler(ValueError)
    async def validation_error_handler(request: Request, exc: ValueError):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def main():
    """Main entry point."""
    config = get_config()
    logging_config = get_logging_config(config.get("log_level"))
    log_config.dictConfig(logging_config)

    try:
        app = create_app(build_components(config))
        uvicorn.run(app, host=config.get("host"), port=config.get("port"), log_config=logging_config)
    except KeyboardInterrupt:
        logger.info("Agent stopped by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        raise


if __name__ == "__main__":
    main()
