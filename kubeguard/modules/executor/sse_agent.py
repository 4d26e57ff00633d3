#!/usr/bin/env python3
"""
SSE command agent - Server-Sent Events based command channel.

Holds a persistent stream to the control backend, queues every received
command batch, dispatches commands through the CommandRouter on a worker
thread and posts one report per command back to the backend.
"""

import json
import logging
import threading
import time
from queue import Queue
from typing import Dict, List, Optional

import requests
import sseclient
from pydantic import ValidationError

from kubeguard.modules.api import Command, CommandReport, Commands

from .router import CommandRouter

logger = logging.getLogger("kubeguard.executor.sse")

RECONNECT_DELAY_SECONDS = 5

# Queued by stop() to release the command processor
_STOP = object()


def parse_commands(data: str) -> List[Command]:
    """
    Decode a command event payload.

    Accepts either a batch ({"commands": [...]}) or a single command object.

    Raises:
        ValueError: If the payload is not valid JSON or not a command
    """
    payload = json.loads(data)
    if isinstance(payload, dict) and "commands" in payload:
        return Commands.model_validate(payload).commands
    return [Command.model_validate(payload)]


class SSECommandAgent:
    """Agent that receives commands over Server-Sent Events."""

    def __init__(
        self,
        router: CommandRouter,
        backend_url: str,
        cluster_name: str,
        token: str,
        verify_ssl: bool = True,
        ca_cert_path: Optional[str] = None,
    ):
        """
        Initialize SSE agent configuration.

        Args:
            router: Router dispatching received commands
            backend_url: Control backend base URL
            cluster_name: Cluster name sent with every request
            token: Bearer token
            verify_ssl: Verify the backend certificate
            ca_cert_path: CA bundle overriding verify_ssl
        """
        if not all([backend_url, cluster_name, token]):
            raise ValueError("backend_url, cluster_name and token are required for the command channel")

        self.router = router
        self.backend_url = backend_url.rstrip("/")
        self.cluster_name = cluster_name
        self.verify = ca_cert_path if ca_cert_path else verify_ssl

        # Security validation: Warn if using HTTP in production
        if self.backend_url.startswith("http://"):
            logger.warning("Using HTTP without TLS - this should only be used for local development!")

        self.command_queue: Queue = Queue()
        self.headers = {
            "Authorization": f"Bearer {token}",
            "X-Cluster-Name": cluster_name,
        }
        self._stop = threading.Event()

        logger.info(f"SSE agent initialized for cluster: {cluster_name}")

    def run(self) -> None:
        """
        Main agent loop.

        Starts the command processor thread and keeps the SSE stream
        connected until stop() is called.
        """
        logger.info("Starting SSE agent")

        processor_thread = threading.Thread(target=self._process_commands, daemon=True, name="command-processor")
        processor_thread.start()

        while not self._stop.is_set():
            try:
                self._connect_sse()
            except Exception as e:
                logger.error(f"SSE connection error: {e}")
            if not self._stop.is_set():
                logger.info(f"Reconnecting in {RECONNECT_DELAY_SECONDS} seconds...")
                self._stop.wait(RECONNECT_DELAY_SECONDS)

        processor_thread.join(timeout=RECONNECT_DELAY_SECONDS)
        logger.info("SSE agent stopped")

    def stop(self) -> None:
        self._stop.set()
        self.command_queue.put(_STOP)

    def _connect_sse(self) -> None:
        """Connect to the SSE endpoint and queue received commands."""
        url = f"{self.backend_url}/agent/stream"
        logger.info(f"Connecting to SSE endpoint: {url}")

        response = requests.get(url, headers=self.headers, stream=True, verify=self.verify)
        if response.status_code != 200:
            raise ConnectionError(f"Failed to connect: {response.status_code}")

        client = sseclient.SSEClient(response)
        logger.info("SSE connection established")

        for event in client.events():
            if self._stop.is_set():
                return
            self._handle_event(event.event, event.data)

    def _handle_event(self, event_type: str, data: str) -> None:
        if event_type == "command":
            try:
                commands = parse_commands(data)
            except (ValueError, ValidationError) as e:
                logger.error(f"Failed to parse command event: {e}")
                return
            logger.info(f"Received {len(commands)} command(s)")
            for command in commands:
                self.command_queue.put(command)

        elif event_type == "connected":
            logger.info(f"Connected to backend: {data}")

        elif event_type == "keepalive":
            logger.debug("Keepalive received")

    def _process_commands(self) -> None:
        """
        Process commands from the queue.

        Runs in a separate thread to avoid blocking the SSE listener.
        """
        logger.info("Command processor started")

        while True:
            command = self.command_queue.get()
            if command is _STOP:
                break
            try:
                self.execute_command(command)
            except Exception as e:
                logger.error(f"Error processing command: {e}")

        logger.info("Command processor stopped")

    def execute_command(self, command: Command) -> CommandReport:
        """Dispatch a command and send its report back."""
        logger.info(f"Executing command {command.command_name} ({command.response_id or 'no response id'})")

        start_time = time.time()
        report = self.router.dispatch(command)
        logger.info(
            f"Command {command.command_name} finished with {report.status.value} "
            f"in {int((time.time() - start_time) * 1000)}ms"
        )

        self._post_report(report)
        return report

    def _post_report(self, report: CommandReport) -> None:
        payload: Dict = report.model_dump(mode="json")
        try:
            response = requests.post(
                f"{self.backend_url}/agent/results",
                json=payload,
                headers=self.headers,
                timeout=10,
                verify=self.verify,
            )
            if response.status_code != 200:
                logger.error(f"Failed to submit report: {response.status_code}")

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to submit report for {report.command_name}: {e}")
