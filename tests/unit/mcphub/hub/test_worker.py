# -*- coding: utf-8 -*-
"""Location: ./tests/unit/mcphub/hub/test_worker.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for the host-side sandbox worker handle. These start real worker
processes.
"""

# Standard
import asyncio
from typing import List, Optional

# Third-Party
import pytest

# First-Party
from mcphub.hub.messages import ExecMessage, ExecToolRef, ToolResultMessage
from mcphub.hub.worker import SandboxWorker, WorkerMessage


class _Listener:
    def __init__(self):
        self.messages: List[WorkerMessage] = []
        self.errors: List[str] = []
        self.exit_codes: List[Optional[int]] = []
        self.settled = asyncio.Event()

    def on_message(self, message: WorkerMessage) -> None:
        self.messages.append(message)
        if message.type in ("result", "error"):
            self.settled.set()

    def on_error(self, error: str) -> None:
        self.errors.append(error)

    def on_exit(self, exit_code: Optional[int]) -> None:
        self.exit_codes.append(exit_code)
        self.settled.set()


class TestSandboxWorker:
    """Tests for SandboxWorker."""

    @pytest.mark.asyncio
    async def test_runs_script_and_reports_exit(self):
        listener = _Listener()
        worker = SandboxWorker()
        await worker.start(listener)
        try:
            assert await worker.post_message(ExecMessage(code="console.log('hi')\nreturn 40 + 2"))
            await asyncio.wait_for(listener.settled.wait(), timeout=30)
        finally:
            worker.terminate()
            await asyncio.wait_for(worker.wait_closed(), timeout=30)

        assert [message.type for message in listener.messages] == ["log", "result"]
        assert listener.messages[0].entry == "[log] hi"
        assert listener.messages[1].result == 42
        assert listener.messages[1].logs == ["[log] hi"]
        assert len(listener.exit_codes) == 1
        assert listener.exit_codes[0] != 0

    @pytest.mark.asyncio
    async def test_tool_call_round_trip(self):
        listener = _Listener()
        worker = SandboxWorker()
        await worker.start(listener)
        try:
            await worker.post_message(ExecMessage(code="return await gh_search(q='x')", tools=[ExecToolRef(function_name="gh_search")]))
            for _ in range(3000):
                if listener.messages:
                    break
                await asyncio.sleep(0.01)

            call = listener.messages[0]
            assert call.type == "callTool"
            assert call.params == {"q": "x"}

            await worker.post_message(ToolResultMessage(request_id=call.request_id, result=["a"]))
            await asyncio.wait_for(listener.settled.wait(), timeout=30)
        finally:
            worker.terminate()
            await worker.wait_closed()

        assert listener.messages[-1].type == "result"
        assert listener.messages[-1].result == ["a"]

    @pytest.mark.asyncio
    async def test_terminate_is_idempotent_and_blocks_posting(self):
        listener = _Listener()
        worker = SandboxWorker()
        await worker.start(listener)

        worker.terminate()
        worker.terminate()
        await asyncio.wait_for(worker.wait_closed(), timeout=30)

        assert worker.terminated is True
        assert await worker.post_message(ExecMessage(code="return 1")) is False
        assert len(listener.exit_codes) == 1

    @pytest.mark.asyncio
    async def test_start_twice_raises(self):
        worker = SandboxWorker()
        await worker.start(_Listener())
        try:
            with pytest.raises(RuntimeError):
                await worker.start(_Listener())
        finally:
            worker.terminate()
            await worker.wait_closed()

    @pytest.mark.asyncio
    async def test_large_post_to_busy_worker_leaves_loop_free(self):
        listener = _Listener()
        worker = SandboxWorker()
        await worker.start(listener)
        try:
            await worker.post_message(ExecMessage(code="while True:\n    pass"))
            ticks = 0

            async def ticker():
                nonlocal ticks
                while True:
                    ticks += 1
                    await asyncio.sleep(0.01)

            ticking = asyncio.create_task(ticker())
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(worker.post_message(ToolResultMessage(request_id="r1", result="x" * 5_000_000)), timeout=1)
            ticking.cancel()

            assert ticks > 10
        finally:
            worker.terminate()
            await asyncio.wait_for(worker.wait_closed(), timeout=30)

        assert len(listener.exit_codes) == 1

    @pytest.mark.asyncio
    async def test_missing_interpreter_raises_os_error(self, tmp_path):
        worker = SandboxWorker(python=str(tmp_path / "no-such-python"))
        with pytest.raises(OSError):
            await worker.start(_Listener())

    def test_command_uses_settings(self, monkeypatch):
        monkeypatch.setattr("mcphub.hub.worker.settings.hub_sandbox_python", "/opt/python/bin/python3")
        monkeypatch.setattr("mcphub.hub.worker.settings.hub_max_message_bytes", 1024)

        command = SandboxWorker(max_logs=5).command()

        assert command == ["/opt/python/bin/python3", "-m", "mcphub.hub.sandbox", "--max-logs", "5", "--max-message-bytes", "1024"]
