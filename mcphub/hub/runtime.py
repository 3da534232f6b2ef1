# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/runtime.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Execution Runtime.

Runs one ``exec`` request: starts a sandbox worker, relays the tool calls the
script makes through the :class:`~mcphub.hub.bridge.ToolBridge`, collects
console output and enforces the wall-clock timeout. Every run ends in exactly
one :class:`~mcphub.hub.schemas.ExecOutput`; the first terminal event wins
and everything after it is ignored.
"""

# Standard
import asyncio
import time
from typing import Any, assert_never, Callable, Dict, List, Optional, Sequence, Set
import uuid

# First-Party
from mcphub.config import settings
from mcphub.hub.bridge import ToolBridge
from mcphub.hub.generator import GeneratedTool
from mcphub.hub.messages import CallToolMessage, ErrorMessage, ExecMessage, ExecToolRef, LogMessage, ResultMessage, ToolErrorMessage, ToolResultMessage
from mcphub.hub.sandbox import error_message
from mcphub.hub.schemas import ExecOutput
from mcphub.hub.worker import SandboxWorker, WorkerHandle, WorkerMessage
from mcphub.services.logging_service import LoggingService

logger = LoggingService().get_logger(__name__)

WorkerFactory = Callable[[], WorkerHandle]


class _ExecutionRun:
    """State of one ``execute`` call; acts as the worker's listener."""

    def __init__(self, bridge: ToolBridge, worker: WorkerHandle, max_logs: int):
        self._bridge = bridge
        self._worker = worker
        self._max_logs = max_logs
        self._logs: List[str] = []
        self._active_calls: Dict[str, str] = {}
        self._relays: Set[asyncio.Task] = set()
        self.outcome: asyncio.Future = asyncio.get_running_loop().create_future()
        self.finished = False
        self.timed_out = False

    @property
    def active_call_ids(self) -> List[str]:
        """Call ids of tool calls currently in flight."""
        return list(self._active_calls.values())

    def on_message(self, message: WorkerMessage) -> None:
        if isinstance(message, CallToolMessage):
            if self.finished:
                return
            task = asyncio.create_task(self._relay(message))
            self._relays.add(task)
            task.add_done_callback(self._relays.discard)
        elif isinstance(message, LogMessage):
            if len(self._logs) < self._max_logs:
                self._logs.append(message.entry)
        elif isinstance(message, ResultMessage):
            self._finish(ExecOutput.success(message.result, self._final_logs(message.logs)))
        elif isinstance(message, ErrorMessage):
            self._finish(ExecOutput.failure(message.error, self._final_logs(message.logs)))
        else:
            assert_never(message)

    def on_error(self, error: str) -> None:
        self._finish(ExecOutput.failure(f"Worker error: {error}", self._logs))

    def on_exit(self, exit_code: Optional[int]) -> None:
        if exit_code == 0:
            self._finish(ExecOutput.failure("Worker exited unexpectedly", self._logs))
        else:
            self._finish(ExecOutput.failure(f"Worker exited with code {exit_code}", self._logs))

    def _final_logs(self, worker_logs: Optional[List[str]]) -> List[str]:
        if worker_logs is not None:
            return worker_logs[: self._max_logs]
        return self._logs

    def _finish(self, output: ExecOutput) -> None:
        if self.finished:
            return
        self.finished = True
        self.outcome.set_result(output)
        if not self._worker.terminated:
            self._worker.terminate()

    async def _relay(self, message: CallToolMessage) -> None:
        call_id = str(uuid.uuid4())
        self._active_calls[message.request_id] = call_id
        reply: Any
        try:
            result = await self._bridge.call_mcp_tool(message.function_name, message.params, call_id)
            reply = ToolResultMessage(request_id=message.request_id, result=result)
        except Exception as exc:
            logger.debug(f"Tool call {message.function_name} failed: {exc}")
            reply = ToolErrorMessage(request_id=message.request_id, error=error_message(exc))
        finally:
            self._active_calls.pop(message.request_id, None)

        if not self.finished:
            await self._worker.post_message(reply)

    async def time_out(self, timeout_ms: int) -> ExecOutput:
        """Abort in-flight calls, stop the worker and report the timeout.

        Args:
            timeout_ms: Configured limit, used in the message.

        Returns:
            The run's outcome.
        """
        if self.finished:
            return self.outcome.result()
        self.finished = True
        self.timed_out = True

        call_ids = self.active_call_ids
        if call_ids:
            logger.info(f"Aborting {len(call_ids)} in-flight tool call(s) after timeout")
            await asyncio.gather(*(self._bridge.abort_mcp_tool(call_id) for call_id in call_ids), return_exceptions=True)

        if not self._worker.terminated:
            self._worker.terminate()
        output = ExecOutput.failure(f"Execution timed out after {timeout_ms}ms", self._logs)
        self.outcome.set_result(output)
        return output

    async def close(self) -> None:
        """Stop the worker, cancel leftover relays and wait for the pump."""
        self.finished = True
        if not self._worker.terminated:
            self._worker.terminate()
        for task in list(self._relays):
            task.cancel()
        if self._relays:
            await asyncio.gather(*self._relays, return_exceptions=True)
        await self._worker.wait_closed()


class ExecutionRuntime:
    """Runs scripts in sandbox workers on behalf of the ``exec`` tool.

    Examples:
        >>> from unittest.mock import MagicMock
        >>> runtime = ExecutionRuntime(MagicMock(), timeout_ms=5000)
        >>> runtime.timeout_ms
        5000
    """

    def __init__(
        self,
        bridge: ToolBridge,
        timeout_ms: Optional[int] = None,
        max_logs: Optional[int] = None,
        worker_factory: Optional[WorkerFactory] = None,
    ):
        """Initialize the runtime.

        Args:
            bridge: Bridge used for tool calls made by scripts.
            timeout_ms: Wall-clock limit per run, defaults to ``settings.hub_exec_timeout_ms``.
            max_logs: Console line cap, defaults to ``settings.hub_max_logs``.
            worker_factory: Creates the worker for each run, defaults to :class:`SandboxWorker`.
        """
        self._bridge = bridge
        self.timeout_ms = timeout_ms or settings.hub_exec_timeout_ms
        self.max_logs = max_logs or settings.hub_max_logs
        self._worker_factory = worker_factory or (lambda: SandboxWorker(max_logs=self.max_logs))

    @staticmethod
    async def _submit(worker: WorkerHandle, run: _ExecutionRun, code: str, tools: Sequence[GeneratedTool]) -> ExecOutput:
        await worker.post_message(ExecMessage(code=code, tools=[ExecToolRef(function_name=tool.function_name) for tool in tools]))
        return await asyncio.shield(run.outcome)

    async def execute(self, code: str, tools: Sequence[GeneratedTool]) -> ExecOutput:
        """Run ``code`` with ``tools`` callable from it.

        Args:
            code: Script statements; only an explicit ``return`` produces a result.
            tools: Catalog entries exposed as functions.

        Returns:
            The run's outcome. Failures of any kind are reported in the
            output rather than raised.
        """
        worker = self._worker_factory()
        run = _ExecutionRun(self._bridge, worker, self.max_logs)
        started = time.monotonic()

        try:
            await worker.start(run)
        except OSError as exc:
            logger.error(f"Failed to start sandbox worker: {exc}")
            return ExecOutput.failure(f"Worker error: {exc}")

        try:
            try:
                output = await asyncio.wait_for(self._submit(worker, run, code, tools), timeout=self.timeout_ms / 1000)
            except asyncio.TimeoutError:
                logger.warning(f"Execution timed out after {self.timeout_ms}ms")
                output = await run.time_out(self.timeout_ms)
        finally:
            await run.close()

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(f"Execution finished in {elapsed_ms:.0f}ms (error={bool(output.is_error)})")
        return output
