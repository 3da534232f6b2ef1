# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/sandbox.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Sandbox worker process.

Everything in this module runs inside the child process started by
:class:`mcphub.hub.worker.SandboxWorker` as ``python -m mcphub.hub.sandbox``. A :class:`SandboxSession` receives
an ``exec`` message, wraps the script as the body of an async function, runs
it with a small scope (tool functions, ``parallel``, ``settle``, ``console``)
and restricted builtins, and reports the outcome. Tool calls made by the
script are forwarded to the host as ``callTool`` messages and resumed when
the matching ``toolResult`` or ``toolError`` arrives.

The module only uses plain ``logging`` so the worker never opens the hub's
log handlers.

Examples:
    >>> print(build_script("x = 1\\nreturn x", ["console"]))
    async def __user_main__(console):
        x = 1
        return x
    <BLANKLINE>
    >>> format_log_arg({"a": 1})
    '{"a":1}'
    >>> error_message(ValueError())
    'ValueError'
"""

# Standard
import argparse
import asyncio
import builtins
import keyword
import logging
import os
import sys
import textwrap
from typing import Any, assert_never, Awaitable, BinaryIO, Callable, Dict, List, Optional, Sequence, Union
import uuid

# Third-Party
import orjson
from pydantic import ValidationError

# First-Party
from mcphub.hub.messages import CallToolMessage, decode_line, encode_line, encode_message, ErrorMessage, ExecMessage, LogMessage, parse_host_message, ResultMessage, ToolErrorMessage, ToolResultMessage
from mcphub.utils.base_models import BaseModelWithConfigDict

logger = logging.getLogger(__name__)

SCRIPT_ENTRYPOINT = "__user_main__"
CALL_TOOL_HOOK = "__call_tool"
DEFAULT_MAX_LOGS = 1000
DEFAULT_MAX_MESSAGE_BYTES = 64 * 1024 * 1024


class ToolCallError(Exception):
    """Raised inside a script when a tool call is answered with an error."""


_SAFE_BUILTINS: Dict[str, Any] = {
    "__build_class__": builtins.__build_class__,
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "divmod": divmod,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "format": format,
    "frozenset": frozenset,
    "int": int,
    "isinstance": isinstance,
    "iter": iter,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "next": next,
    "range": range,
    "repr": repr,
    "reversed": reversed,
    "round": round,
    "set": set,
    "slice": slice,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
    "Exception": Exception,
    "ValueError": ValueError,
    "TypeError": TypeError,
    "KeyError": KeyError,
    "IndexError": IndexError,
    "RuntimeError": RuntimeError,
    "ZeroDivisionError": ZeroDivisionError,
    "ToolCallError": ToolCallError,
}

# Names a script already sees; tool functions never shadow them.
RESERVED_NAMES = frozenset({CALL_TOOL_HOOK, "parallel", "settle", "console", "print", "__name__"} | set(_SAFE_BUILTINS))


def error_message(exc: BaseException) -> str:
    """Return the message of ``exc``, or its class name when the message is empty.

    Args:
        exc: Exception instance.

    Returns:
        Human-readable message.

    Examples:
        >>> error_message(RuntimeError("boom"))
        'boom'
        >>> error_message(KeyError("k"))
        "'k'"
    """
    return str(exc) or type(exc).__name__


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, BaseException):
        return error_message(value)
    return str(value)


def to_jsonable(value: Any) -> Any:
    """Normalise ``value`` into JSON-compatible data.

    Args:
        value: Arbitrary script value.

    Returns:
        The value after a JSON round-trip; unknown objects become strings.

    Examples:
        >>> to_jsonable({"ids": (1, 2), 3: None})
        {'ids': [1, 2], '3': None}
    """
    return orjson.loads(orjson.dumps(value, default=_json_default, option=orjson.OPT_NON_STR_KEYS))


def format_log_arg(value: Any) -> str:
    """Render one console argument.

    Args:
        value: Argument passed to a console method.

    Returns:
        Strings verbatim, exceptions by message, containers as JSON,
        anything else via ``str``.

    Examples:
        >>> format_log_arg("hi")
        'hi'
        >>> format_log_arg([1, "a"])
        '[1,"a"]'
        >>> format_log_arg(None)
        'None'
    """
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return error_message(value)
    if isinstance(value, (dict, list, tuple)):
        try:
            return orjson.dumps(value, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()
        except orjson.JSONEncodeError:
            return str(value)
    return str(value)


class SandboxConsole:
    """``console`` object available to scripts.

    Examples:
        >>> lines = []
        >>> console = SandboxConsole(lines.append)
        >>> console.warn("careful", 3)
        >>> lines
        ['[warn] careful 3']
    """

    def __init__(self, sink: Callable[[str], None]):
        self._sink = sink

    def _write(self, level: str, args: Sequence[Any], sep: str = " ") -> None:
        self._sink(f"[{level}] {sep.join(format_log_arg(arg) for arg in args)}")

    def log(self, *args: Any) -> None:
        self._write("log", args)

    def warn(self, *args: Any) -> None:
        self._write("warn", args)

    def error(self, *args: Any) -> None:
        self._write("error", args)

    def info(self, *args: Any) -> None:
        self._write("info", args)

    def debug(self, *args: Any) -> None:
        self._write("debug", args)

    def print(self, *args: Any, sep: Optional[str] = " ", **_print_options: Any) -> None:
        """``print`` replacement; output goes to the log as ``[log]`` lines."""
        self._write("log", args, sep if sep is not None else " ")


def _unpack_awaitables(aws: Sequence[Any]) -> Sequence[Any]:
    if len(aws) == 1 and isinstance(aws[0], (list, tuple)):
        return aws[0]
    return aws


async def parallel(*aws: Any) -> List[Any]:
    """Await every awaitable concurrently; the first failure propagates.

    Accepts awaitables as separate arguments or as a single list.

    Returns:
        Results in argument order.
    """
    return list(await asyncio.gather(*_unpack_awaitables(aws)))


async def settle(*aws: Any) -> List[Dict[str, Any]]:
    """Await every awaitable concurrently and report each outcome.

    Returns:
        One ``{"status": "fulfilled", "value": v}`` or
        ``{"status": "rejected", "reason": message}`` per awaitable, in
        argument order.
    """
    outcomes = await asyncio.gather(*_unpack_awaitables(aws), return_exceptions=True)
    return [{"status": "rejected", "reason": error_message(outcome)} if isinstance(outcome, BaseException) else {"status": "fulfilled", "value": outcome} for outcome in outcomes]


def build_script(code: str, param_names: Sequence[str]) -> str:
    """Wrap script statements as the body of the async entrypoint.

    Args:
        code: Script statements.
        param_names: Names injected as entrypoint parameters.

    Returns:
        Source text of the entrypoint definition.
    """
    body = textwrap.dedent(code).strip("\n")
    if not body.strip():
        body = "pass"
    return f"async def {SCRIPT_ENTRYPOINT}({', '.join(param_names)}):\n{textwrap.indent(body, '    ')}\n"


def compile_script(code: str, param_names: Sequence[str]) -> Callable[..., Awaitable[Any]]:
    """Compile a script into its entrypoint coroutine function.

    Args:
        code: Script statements.
        param_names: Names injected as entrypoint parameters.

    Returns:
        The entrypoint, bound to restricted builtins.

    Raises:
        SyntaxError: If the script does not compile.
    """
    namespace: Dict[str, Any] = {"__builtins__": dict(_SAFE_BUILTINS), "__name__": "__sandbox__"}
    exec(compile(build_script(code, param_names), "<sandbox>", "exec"), namespace)  # nosec B102
    return namespace[SCRIPT_ENTRYPOINT]


def _is_bindable(function_name: str) -> bool:
    return function_name.isidentifier() and not keyword.iskeyword(function_name) and function_name not in RESERVED_NAMES


class SandboxSession:
    """Worker-side execution state for one sandbox process."""

    def __init__(self, send: Callable[[Dict[str, Any]], None], max_logs: int = DEFAULT_MAX_LOGS):
        """Initialize the session.

        Args:
            send: Callback posting an encoded message to the host.
            max_logs: Maximum console lines kept for the terminal message.
        """
        self._send = send
        self._max_logs = max_logs
        self._pending: Dict[str, asyncio.Future] = {}
        self._logs: List[str] = []
        self.is_executing = False

    @property
    def pending_count(self) -> int:
        """Number of tool calls awaiting an answer."""
        return len(self._pending)

    def _post(self, message: BaseModelWithConfigDict) -> None:
        self._send(encode_message(message))

    def _record_log(self, entry: str) -> None:
        if len(self._logs) < self._max_logs:
            self._logs.append(entry)
        self._post(LogMessage(entry=entry))

    async def _call_tool(self, function_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        request_id = str(uuid.uuid4())
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._post(CallToolMessage(request_id=request_id, function_name=function_name, params=to_jsonable(dict(params or {}))))
            return await future
        finally:
            self._pending.pop(request_id, None)

    def _bind_tool(self, function_name: str) -> Callable[..., Awaitable[Any]]:
        async def tool_function(params: Optional[Dict[str, Any]] = None, /, **kwargs: Any) -> Any:
            if params is not None and not isinstance(params, dict):
                raise TypeError(f"{function_name}() expects a dict of parameters")
            merged = dict(params or {})
            merged.update(kwargs)
            return await self._call_tool(function_name, merged)

        tool_function.__name__ = function_name
        tool_function.__qualname__ = function_name
        return tool_function

    def build_scope(self, function_names: Sequence[str]) -> Dict[str, Any]:
        """Build the names visible to a script.

        Args:
            function_names: Tool functions declared by the ``exec`` message.

        Returns:
            Mapping of parameter name to value, in entrypoint parameter order.
        """
        console = SandboxConsole(self._record_log)
        scope: Dict[str, Any] = {
            CALL_TOOL_HOOK: self._call_tool,
            "parallel": parallel,
            "settle": settle,
            "console": console,
            "print": console.print,
        }
        for function_name in function_names:
            if _is_bindable(function_name):
                scope[function_name] = self._bind_tool(function_name)
            else:
                logger.debug(f"Skipping tool function with unusable name: {function_name!r}")
        return scope

    async def execute(self, message: ExecMessage) -> None:
        """Run one script and post its terminal message.

        Args:
            message: The ``exec`` request.
        """
        self.is_executing = True
        self._logs = []
        outcome: Union[ResultMessage, ErrorMessage]
        try:
            scope = self.build_scope([tool.function_name for tool in message.tools])
            entrypoint = compile_script(message.code, list(scope))
            result = await entrypoint(*scope.values())
            outcome = ResultMessage(result=to_jsonable(result), logs=list(self._logs))
        except Exception as exc:
            outcome = ErrorMessage(error=error_message(exc), logs=list(self._logs))
        finally:
            self._cancel_pending()
            self.is_executing = False
        self._post(outcome)

    def _cancel_pending(self) -> None:
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()

    def _resolve(self, request_id: str, result: Any = None, error: Optional[str] = None) -> None:
        future = self._pending.get(request_id)
        if future is None or future.done():
            logger.debug(f"Ignoring answer for unknown or settled request {request_id}")
            return
        if error is not None:
            future.set_exception(ToolCallError(error))
        else:
            future.set_result(result)

    def dispatch(self, message: Union[ExecMessage, ToolResultMessage, ToolErrorMessage]) -> Optional[asyncio.Task]:
        """Handle one host message.

        Args:
            message: Validated host message.

        Returns:
            The execution task for an accepted ``exec``, otherwise None.
        """
        if isinstance(message, ExecMessage):
            if self.is_executing:
                logger.debug("Ignoring exec while another script is running")
                return None
            self.is_executing = True
            return asyncio.create_task(self.execute(message))
        if isinstance(message, ToolResultMessage):
            self._resolve(message.request_id, result=message.result)
            return None
        if isinstance(message, ToolErrorMessage):
            self._resolve(message.request_id, error=message.error)
            return None
        assert_never(message)


async def serve(reader: asyncio.StreamReader, send: Callable[[Dict[str, Any]], None], max_logs: int = DEFAULT_MAX_LOGS) -> None:
    """Process host messages until the host closes the channel.

    Args:
        reader: Stream of newline-delimited JSON host messages.
        send: Callback posting an encoded message to the host.
        max_logs: Console line cap.
    """
    session = SandboxSession(send, max_logs)
    tasks = set()
    while True:
        try:
            line = await reader.readline()
        except ValueError as exc:
            logger.warning(f"Host message exceeds the line limit: {exc}")
            break
        if not line:
            break
        if not line.strip():
            continue
        try:
            message = parse_host_message(decode_line(line))
        except orjson.JSONDecodeError:
            logger.warning("Dropping host message that is not valid JSON")
            continue
        except ValidationError as exc:
            logger.warning(f"Dropping invalid host message: {exc.error_count()} validation error(s)")
            continue
        task = session.dispatch(message)
        if task is not None:
            tasks.add(task)
            task.add_done_callback(tasks.discard)
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


async def _serve_stdio(protocol_out: BinaryIO, max_logs: int, max_message_bytes: int) -> None:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=max_message_bytes)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, protocol_out)
    writer = asyncio.StreamWriter(transport, protocol, None, loop)

    def send(data: Dict[str, Any]) -> None:
        if not writer.is_closing():
            writer.write(encode_line(data))

    try:
        await serve(reader, send, max_logs)
        await writer.drain()
    finally:
        writer.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Process entrypoint of a sandbox worker, ``python -m mcphub.hub.sandbox``.

    Protocol lines are read from stdin and written to the original stdout;
    file descriptor 1 is pointed at stderr so stray writes cannot corrupt
    the channel.

    Args:
        argv: Command line arguments, ``sys.argv[1:]`` by default.
    """
    parser = argparse.ArgumentParser(description="MCP Hub sandbox worker (spoken to over stdin/stdout)")
    parser.add_argument("--max-logs", type=int, default=DEFAULT_MAX_LOGS, help="Console line cap")
    parser.add_argument("--max-message-bytes", type=int, default=DEFAULT_MAX_MESSAGE_BYTES, help="Largest accepted protocol line")
    args = parser.parse_args(argv)

    protocol_out = os.fdopen(os.dup(sys.stdout.fileno()), "wb", buffering=0)
    os.dup2(sys.stderr.fileno(), sys.stdout.fileno())
    asyncio.run(_serve_stdio(protocol_out, args.max_logs, args.max_message_bytes))


if __name__ == "__main__":
    main()
