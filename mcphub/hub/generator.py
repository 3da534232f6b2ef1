# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/generator.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tool Function Generator.

Turns one upstream tool descriptor into a callable stub: a globally unique
Python function name, a keyword-only type signature derived from the JSON
Schema, the declaration text shown to the model by ``search``, and a closure
that forwards calls to the bridge.

Examples:
    >>> from mcphub.hub.schemas import ServerTool
    >>> async def invoke(name, params):
    ...     return name
    >>> tool = ServerTool(serverId="gh", serverName="github", name="search_repos",
    ...                   inputSchema={"type": "object", "properties": {"query": {"type": "string"}}, "required": ["query"]})
    >>> stub = generate_tool_function(tool, set(), invoke)
    >>> stub.function_name
    'github_searchRepos'
    >>> stub.signature
    '*, query: str'
"""

# Standard
from dataclasses import dataclass, field
import keyword
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

# First-Party
from mcphub.hub.sandbox import CALL_TOOL_HOOK, RESERVED_NAMES
from mcphub.hub.schemas import ServerTool

ToolInvoker = Callable[[str, Dict[str, Any]], Awaitable[Any]]

_WORD_SPLIT_RE = re.compile(r"[^a-z0-9]+")

_SCALAR_TYPES: Dict[str, str] = {
    "string": "str",
    "number": "float",
    "integer": "int",
    "boolean": "bool",
    "null": "None",
}


@dataclass(frozen=True)
class GeneratedTool:
    """One catalog entry: a remote tool rendered as a callable stub."""

    server_id: str
    server_name: str
    tool_name: str
    function_name: str
    source_text: str
    signature: str
    returns: str
    call: Callable[..., Awaitable[Any]] = field(repr=False, compare=False)
    description: Optional[str] = None


def camel_case_identifier(value: str) -> str:
    """Convert an arbitrary server or tool name into a camelCase identifier.

    The value is lowercased and split on every run of characters outside
    ``[a-z0-9]``; words after the first are capitalised.

    Args:
        value: Raw name.

    Returns:
        camelCase identifier, ``_``-prefixed when it would start with a digit.

    Examples:
        >>> camel_case_identifier("search_issues")
        'searchIssues'
        >>> camel_case_identifier("my-server_name")
        'myServerName'
        >>> camel_case_identifier("MY_SERVER")
        'myServer'
        >>> camel_case_identifier("MyServer")
        'myserver'
        >>> camel_case_identifier("test@server!")
        'testServer'
        >>> camel_case_identifier("123server")
        '_123server'
        >>> camel_case_identifier("  ")
        ''
    """
    words = [word for word in _WORD_SPLIT_RE.split(value.strip().lower()) if word]
    if not words:
        return ""
    result = words[0] + "".join(word[0].upper() + word[1:] for word in words[1:])
    if result[0].isdigit():
        result = f"_{result}"
    return result


def build_tool_name(
    server_name: Optional[str],
    tool_name: str,
    prefix: str = "",
    delimiter: str = "_",
    max_length: Optional[int] = None,
    existing_names: Optional[Set[str]] = None,
) -> str:
    """Build a unique function name for ``tool_name`` on ``server_name``.

    When ``existing_names`` is given, a colliding name gets the smallest
    numeric suffix (``1``, ``2``, ...) that makes it unique, truncating the
    base so the result still fits ``max_length``. The chosen name is added
    to ``existing_names``.

    Args:
        server_name: Server display name; omitted from the result when empty.
        tool_name: Tool name.
        prefix: Text prepended to the name.
        delimiter: Separator between server and tool parts.
        max_length: Optional hard length limit.
        existing_names: Names already taken; mutated.

    Returns:
        The resolved name.

    Examples:
        >>> build_tool_name("github", "search_issues")
        'github_searchIssues'
        >>> build_tool_name(None, "search_issues")
        'searchIssues'
        >>> build_tool_name("github", "search", prefix="mcp__", delimiter="__")
        'mcp__github__search'
        >>> taken = {"abcd", "abc1", "abc2"}
        >>> build_tool_name("abcd", "", max_length=4, existing_names=taken)
        'abc3'
        >>> build_tool_name(None, "class")
        'class_'
    """
    tool_part = camel_case_identifier(tool_name or "")
    if server_name:
        name = f"{prefix}{camel_case_identifier(server_name)}{delimiter}{tool_part}"
    else:
        name = f"{prefix}{tool_part}"

    if not name:
        name = "tool"
    if keyword.iskeyword(name):
        name = f"{name}_"
    if max_length:
        name = name[:max_length]

    if existing_names is None:
        return name

    if name in existing_names:
        counter = 1
        while True:
            suffix = str(counter)
            base = name[: max_length - len(suffix)] if max_length else name
            candidate = f"{base}{suffix}"
            if candidate not in existing_names:
                name = candidate
                break
            counter += 1

    existing_names.add(name)
    return name


def generate_function_name(server_name: Optional[str], tool_name: str, existing_names: Optional[Set[str]] = None) -> str:
    """Return the ``serverName_toolName`` function name used inside the sandbox.

    Args:
        server_name: Server display name.
        tool_name: Tool name.
        existing_names: Names already taken; mutated.

    Returns:
        Unique camelCase function name.

    Examples:
        >>> names = set()
        >>> generate_function_name("server1", "search", names)
        'server1_search'
        >>> generate_function_name("server1", "search", names)
        'server1_search1'
        >>> generate_function_name("my-server", "my-tool")
        'myServer_myTool'
    """
    return build_tool_name(server_name, tool_name, existing_names=existing_names)


def schema_to_type(schema: Any) -> str:
    """Translate a JSON Schema fragment into a compact Python type hint.

    Unknown or malformed shapes degrade to ``Any`` instead of failing.

    Args:
        schema: JSON Schema fragment.

    Returns:
        Type hint text.

    Examples:
        >>> schema_to_type({"type": "string"})
        'str'
        >>> schema_to_type({"type": "integer"})
        'int'
        >>> schema_to_type({"enum": ["asc", "desc"]})
        "Literal['asc', 'desc']"
        >>> schema_to_type({"type": "array", "items": {"type": "number"}})
        'List[float]'
        >>> schema_to_type({"type": "object", "properties": {"a": {}}})
        'Dict[str, Any]'
        >>> schema_to_type({"type": "array"})
        'List[Any]'
        >>> schema_to_type({"type": ["string", "null"]})
        'Any'
        >>> schema_to_type(None)
        'Any'
    """
    if not isinstance(schema, dict):
        return "Any"

    enum_values = schema.get("enum")
    if isinstance(enum_values, list) and enum_values:
        return "Literal[" + ", ".join(repr(value) for value in enum_values) + "]"

    schema_type = schema.get("type")
    if schema_type == "array":
        return f"List[{schema_to_type(schema.get('items'))}]"
    if schema_type == "object":
        return "Dict[str, Any]"
    if isinstance(schema_type, str):
        return _SCALAR_TYPES.get(schema_type, "Any")
    return "Any"


def _properties(schema: Any) -> Dict[str, Any]:
    if not isinstance(schema, dict):
        return {}
    props = schema.get("properties")
    return props if isinstance(props, dict) else {}


def _required(schema: Any) -> Set[str]:
    if not isinstance(schema, dict):
        return set()
    required = schema.get("required")
    if not isinstance(required, list):
        return set()
    return {name for name in required if isinstance(name, str)}


def _is_parameter_name(name: Any) -> bool:
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name) and name != CALL_TOOL_HOOK


def render_signature(input_schema: Any) -> str:
    """Render the keyword-only parameter list for a tool's input schema.

    Args:
        input_schema: Tool input JSON Schema.

    Returns:
        Parameter list text without parentheses.

    Examples:
        >>> render_signature({"type": "object", "properties": {"q": {"type": "string"}, "n": {"type": "integer"}}, "required": ["q"]})
        '*, q: str, n: Optional[int] = None'
        >>> render_signature({"type": "object"})
        ''
        >>> render_signature({"properties": {"user-name": {"type": "string"}}})
        '**params: Any'
    """
    props = _properties(input_schema)
    if not props:
        return ""
    if not all(_is_parameter_name(name) for name in props):
        return "**params: Any"

    required = _required(input_schema)
    parts = ["*"]
    for name, prop in props.items():
        type_hint = schema_to_type(prop)
        parts.append(f"{name}: {type_hint}" if name in required else f"{name}: Optional[{type_hint}] = None")
    return ", ".join(parts)


def _one_line(text: Optional[str]) -> str:
    if not text:
        return ""
    first = text.strip().splitlines()[0] if text.strip() else ""
    return first.strip().replace('"""', "'''")


def render_source(
    function_name: str,
    signature: str,
    returns: str,
    description: Optional[str],
    input_schema: Any,
    output_schema: Any = None,
    server_name: str = "",
    tool_name: str = "",
) -> str:
    """Render the stub declaration shown to the model.

    Args:
        function_name: Resolved function name.
        signature: Parameter list from :func:`render_signature`.
        returns: Return type hint.
        description: Tool description.
        input_schema: Tool input JSON Schema, for per-argument docs.
        output_schema: Tool output JSON Schema, for the returns doc.
        server_name: Server display name.
        tool_name: Original tool name.

    Returns:
        Python source text of an ``async def`` with a docstring.
    """
    summary = _one_line(description) or f"Call '{tool_name}' on server '{server_name}'."
    lines = [f"async def {function_name}({signature}) -> {returns}:", f'    """{summary}']

    props = _properties(input_schema)
    if props:
        required = _required(input_schema)
        lines.extend(["", "    Args:"])
        for name, prop in props.items():
            type_hint = schema_to_type(prop)
            qualifier = type_hint if name in required else f"{type_hint}, optional"
            prop_doc = _one_line(prop.get("description") if isinstance(prop, dict) else None)
            lines.append(f"        {name} ({qualifier}): {prop_doc}".rstrip())

    returns_doc = _one_line(output_schema.get("description") if isinstance(output_schema, dict) else None) or "Tool result."
    lines.extend(["", "    Returns:", f"        {returns}: {returns_doc}", '    """'])

    if not signature:
        call_args = "{}"
    elif signature.startswith("**"):
        call_args = "params"
    else:
        call_args = "locals()"
    lines.append(f'    return await {CALL_TOOL_HOOK}("{function_name}", {call_args})')
    return "\n".join(lines)


def generate_tool_function(tool: ServerTool, existing_names: Set[str], invoke: ToolInvoker) -> GeneratedTool:
    """Generate the callable stub for one upstream tool.

    Args:
        tool: Upstream tool descriptor.
        existing_names: Function names already used in this batch; the new
            name is registered in it.
        invoke: Callback performing the real invocation as
            ``invoke(function_name, params)``.

    Returns:
        The generated catalog entry.
    """
    function_name = generate_function_name(tool.server_name, tool.name, existing_names)
    signature = render_signature(tool.input_schema)
    returns = schema_to_type(tool.output_schema) if tool.output_schema else "Any"
    source_text = render_source(
        function_name=function_name,
        signature=signature,
        returns=returns,
        description=tool.description,
        input_schema=tool.input_schema,
        output_schema=tool.output_schema,
        server_name=tool.server_name,
        tool_name=tool.name,
    )

    async def call(params: Optional[Dict[str, Any]] = None) -> Any:
        return await invoke(function_name, dict(params or {}))

    return GeneratedTool(
        server_id=tool.server_id,
        server_name=tool.server_name,
        tool_name=tool.name,
        function_name=function_name,
        source_text=source_text,
        signature=signature,
        returns=returns,
        call=call,
        description=tool.description,
    )


def generate_tool_catalog(tools: Iterable[ServerTool], invoke: ToolInvoker) -> List[GeneratedTool]:
    """Generate stubs for a whole directory listing with one shared name set.

    The set starts out with the names a script already has in scope
    (``parallel``, ``console``, the builtins), so a tool called ``parallel``
    becomes ``parallel1`` instead of being hidden by the combinator.

    Args:
        tools: Upstream tool descriptors, in directory order.
        invoke: Invocation callback shared by every stub.

    Returns:
        Generated entries in input order, with globally unique function names.

    Examples:
        >>> from mcphub.hub.schemas import ServerTool
        >>> async def invoke(name, params):
        ...     return None
        >>> [t.function_name for t in generate_tool_catalog([ServerTool(serverId="s", name="parallel"), ServerTool(serverId="s", name="len")], invoke)]
        ['parallel1', 'len1']
    """
    existing_names: Set[str] = set(RESERVED_NAMES)
    return [generate_tool_function(tool, existing_names, invoke) for tool in tools]
