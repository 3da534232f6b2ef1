# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/worker.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Sandbox Worker Handle.

Host-side handle of one sandbox worker process. The worker runs
``python -m mcphub.hub.sandbox`` as an asyncio subprocess and talks to the
host with newline-delimited JSON over its stdin and stdout. Writes go through
the stream transport and are drained under a lock, so a worker that stops
reading never blocks the event loop. Incoming lines are validated and
delivered to a listener; when the process goes away the listener gets its
exit code.
"""

# Standard
import asyncio
import contextlib
import sys
from typing import List, Optional, Protocol, Union

# Third-Party
import orjson
from pydantic import ValidationError

# First-Party
from mcphub.config import settings
from mcphub.hub.messages import CallToolMessage, decode_line, encode_line, encode_message, ErrorMessage, ExecMessage, LogMessage, parse_worker_message, ResultMessage, ToolErrorMessage, ToolResultMessage
from mcphub.services.logging_service import LoggingService

logger = LoggingService().get_logger(__name__)

SANDBOX_MODULE = "mcphub.hub.sandbox"

HostMessage = Union[ExecMessage, ToolResultMessage, ToolErrorMessage]
WorkerMessage = Union[CallToolMessage, ResultMessage, ErrorMessage, LogMessage]


class WorkerListener(Protocol):
    """Receives the events of one worker."""

    def on_message(self, message: WorkerMessage) -> None:
        """Handle a validated worker message."""

    def on_error(self, error: str) -> None:
        """Handle a worker failure that is not an exit."""

    def on_exit(self, exit_code: Optional[int]) -> None:
        """Handle the end of the worker process."""


class WorkerHandle(Protocol):
    """Operations the execution runtime needs from a worker."""

    @property
    def terminated(self) -> bool:
        """Whether :meth:`terminate` was called."""

    async def start(self, listener: WorkerListener) -> None:
        """Start the worker and begin delivering events to ``listener``."""

    async def post_message(self, message: HostMessage) -> bool:
        """Send a message; return False when the worker is gone."""

    def terminate(self) -> None:
        """Stop the worker."""

    async def wait_closed(self) -> None:
        """Wait until every event has been delivered."""


class SandboxWorker:
    """Sandbox worker running in a separate process.

    Examples:
        >>> worker = SandboxWorker(max_logs=10)
        >>> worker.terminated, worker.pid
        (False, None)
        >>> worker.command()[1:3]
        ['-m', 'mcphub.hub.sandbox']
    """

    def __init__(self, max_logs: Optional[int] = None, python: Optional[str] = None, max_message_bytes: Optional[int] = None):
        """Initialize the handle without starting the process.

        Args:
            max_logs: Console line cap inside the worker, defaults to ``settings.hub_max_logs``.
            python: Interpreter to launch, defaults to ``settings.hub_sandbox_python``
                or the running interpreter.
            max_message_bytes: Largest protocol line in either direction,
                defaults to ``settings.hub_max_message_bytes``.
        """
        self._python = python or settings.hub_sandbox_python or sys.executable
        self._max_logs = max_logs or settings.hub_max_logs
        self._max_message_bytes = max_message_bytes or settings.hub_max_message_bytes
        self._process: Optional[asyncio.subprocess.Process] = None
        self._write_lock = asyncio.Lock()
        self._pump: Optional[asyncio.Task] = None
        self._terminated = False

    @property
    def terminated(self) -> bool:
        """Whether :meth:`terminate` was called.

        Returns:
            True after termination.
        """
        return self._terminated

    @property
    def pid(self) -> Optional[int]:
        """Process id of the running worker.

        Returns:
            The pid, or None before start.
        """
        return self._process.pid if self._process is not None else None

    def command(self) -> List[str]:
        """Command line used to launch the worker.

        Returns:
            Interpreter and arguments.
        """
        return [self._python, "-m", SANDBOX_MODULE, "--max-logs", str(self._max_logs), "--max-message-bytes", str(self._max_message_bytes)]

    async def start(self, listener: WorkerListener) -> None:
        """Start the worker process and its message pump.

        Args:
            listener: Receiver of worker events.

        Raises:
            RuntimeError: If the worker was already started.
        """
        if self._process is not None:
            raise RuntimeError("Sandbox worker already started")

        self._process = await asyncio.create_subprocess_exec(
            *self.command(),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            limit=self._max_message_bytes,
        )
        logger.debug(f"Started sandbox worker pid={self._process.pid}")
        self._pump = asyncio.create_task(self._pump_messages(listener))

    async def _pump_messages(self, listener: WorkerListener) -> None:
        stdout = self._process.stdout
        while True:
            try:
                line = await stdout.readline()
            except ValueError:
                listener.on_error(f"message from worker exceeds {self._max_message_bytes} bytes")
                self.terminate()
                break
            if not line:
                break
            if not line.strip():
                continue
            try:
                message = parse_worker_message(decode_line(line))
            except orjson.JSONDecodeError:
                listener.on_error("invalid message from worker (malformed JSON)")
                continue
            except ValidationError as exc:
                listener.on_error(f"invalid message from worker ({exc.error_count()} validation error(s))")
                continue
            listener.on_message(message)

        exit_code = await self._process.wait()
        logger.debug(f"Sandbox worker pid={self._process.pid} exited with code {exit_code}")
        listener.on_exit(exit_code)

    async def post_message(self, message: HostMessage) -> bool:
        """Send a message to the worker.

        The line is handed to the stdin transport and drained; while the
        worker is not reading, only the calling task waits.

        Args:
            message: Host protocol message.

        Returns:
            True once the message was written, False when the worker is gone.
        """
        if self._process is None or self._process.stdin is None or self._terminated:
            return False
        async with self._write_lock:
            if self._terminated:
                return False
            try:
                self._process.stdin.write(encode_line(encode_message(message)))
                await self._process.stdin.drain()
            except OSError as exc:
                logger.debug(f"Could not post {message.type} to sandbox worker: {exc}")
                return False
        return True

    def terminate(self) -> None:
        """Kill the worker process. Safe to call more than once."""
        if self._terminated:
            return
        self._terminated = True
        if self._process is None:
            return
        if self._process.stdin is not None:
            self._process.stdin.close()
        if self._process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()

    async def wait_closed(self) -> None:
        """Wait for the message pump to deliver the exit event."""
        if self._pump is not None:
            await self._pump
