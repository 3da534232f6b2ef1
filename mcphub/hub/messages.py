# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/messages.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Sandbox Worker Protocol.

Messages exchanged between the host runtime and a sandbox worker process.
Each direction is a closed union discriminated on ``type``. Messages travel
over the worker's stdin and stdout as one camelCase JSON object per line
and are validated on receipt.

Host to worker:
- ``exec``: run a script with a set of tool functions in scope
- ``toolResult`` / ``toolError``: answer a pending ``callTool``

Worker to host:
- ``callTool``: invoke a tool on behalf of the script
- ``result`` / ``error``: terminal outcome of the script
- ``log``: one console line, streamed as it is produced

Examples:
    >>> msg = parse_worker_message({"type": "callTool", "requestId": "r1", "functionName": "gh_search", "params": {"q": "x"}})
    >>> type(msg).__name__, msg.request_id
    ('CallToolMessage', 'r1')
    >>> encode_message(ToolErrorMessage(request_id="r1", error="boom"))
    {'type': 'toolError', 'requestId': 'r1', 'error': 'boom'}
"""

# Standard
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

# Third-Party
import orjson
from pydantic import Field, TypeAdapter

# First-Party
from mcphub.utils.base_models import BaseModelWithConfigDict


class ExecToolRef(BaseModelWithConfigDict):
    """Tool function made available to a script."""

    function_name: str


class ExecMessage(BaseModelWithConfigDict):
    """Start executing ``code``."""

    type: Literal["exec"] = "exec"
    code: str
    tools: List[ExecToolRef] = Field(default_factory=list)


class ToolResultMessage(BaseModelWithConfigDict):
    """Successful answer to a ``callTool`` request."""

    type: Literal["toolResult"] = "toolResult"
    request_id: str
    result: Any = None


class ToolErrorMessage(BaseModelWithConfigDict):
    """Failed answer to a ``callTool`` request."""

    type: Literal["toolError"] = "toolError"
    request_id: str
    error: str


class CallToolMessage(BaseModelWithConfigDict):
    """Request from the script to invoke a tool."""

    type: Literal["callTool"] = "callTool"
    request_id: str
    function_name: str
    params: Dict[str, Any] = Field(default_factory=dict)


class ResultMessage(BaseModelWithConfigDict):
    """Script returned normally."""

    type: Literal["result"] = "result"
    result: Any = None
    logs: Optional[List[str]] = None


class ErrorMessage(BaseModelWithConfigDict):
    """Script raised, or the worker failed to run it."""

    type: Literal["error"] = "error"
    error: str
    logs: Optional[List[str]] = None


class LogMessage(BaseModelWithConfigDict):
    """One console line, already formatted as ``[level] text``."""

    type: Literal["log"] = "log"
    entry: str


HostMessage = Annotated[Union[ExecMessage, ToolResultMessage, ToolErrorMessage], Field(discriminator="type")]
WorkerMessage = Annotated[Union[CallToolMessage, ResultMessage, ErrorMessage, LogMessage], Field(discriminator="type")]

_HOST_MESSAGE_ADAPTER: TypeAdapter = TypeAdapter(HostMessage)
_WORKER_MESSAGE_ADAPTER: TypeAdapter = TypeAdapter(WorkerMessage)


def parse_host_message(data: Any) -> Union[ExecMessage, ToolResultMessage, ToolErrorMessage]:
    """Validate a message received by the worker.

    Args:
        data: Decoded wire dict.

    Returns:
        The typed message.

    Raises:
        pydantic.ValidationError: If ``data`` is not a known host message.

    Examples:
        >>> parse_host_message({"type": "exec", "code": "return 1", "tools": [{"functionName": "a_b"}]}).tools[0].function_name
        'a_b'
    """
    return _HOST_MESSAGE_ADAPTER.validate_python(data)


def parse_worker_message(data: Any) -> Union[CallToolMessage, ResultMessage, ErrorMessage, LogMessage]:
    """Validate a message received by the host.

    Args:
        data: Decoded wire dict.

    Returns:
        The typed message.

    Raises:
        pydantic.ValidationError: If ``data`` is not a known worker message.

    Examples:
        >>> parse_worker_message({"type": "log", "entry": "[log] hi"}).entry
        '[log] hi'
    """
    return _WORKER_MESSAGE_ADAPTER.validate_python(data)


def encode_message(message: BaseModelWithConfigDict) -> Dict[str, Any]:
    """Render a protocol message as its camelCase wire dict.

    Args:
        message: Any protocol message.

    Returns:
        Dict ready for JSON encoding.

    Examples:
        >>> encode_message(LogMessage(entry="[warn] x"))
        {'type': 'log', 'entry': '[warn] x'}
    """
    return message.model_dump(by_alias=True)


def encode_line(data: Dict[str, Any]) -> bytes:
    """Serialise a wire dict as one newline-terminated JSON line.

    Args:
        data: Wire dict, see :func:`encode_message`.

    Returns:
        UTF-8 JSON followed by ``\\n``.

    Examples:
        >>> encode_line({"type": "log", "entry": "a\\nb"})
        b'{"type":"log","entry":"a\\\\nb"}\\n'
    """
    return orjson.dumps(data) + b"\n"


def decode_line(line: bytes) -> Any:
    """Parse one JSON line received from the other side.

    Args:
        line: Raw line, with or without the trailing newline.

    Returns:
        The decoded JSON value.

    Raises:
        orjson.JSONDecodeError: If the line is not valid JSON.

    Examples:
        >>> decode_line(b'{"type": "log", "entry": "x"}\\n')
        {'type': 'log', 'entry': 'x'}
    """
    return orjson.loads(line)
