# -*- coding: utf-8 -*-
"""Location: ./mcphub/hub/search.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tool Search.

Keyword filter and ranking over a generated tool catalog. The query is a
comma-separated list of keywords with OR semantics; matching is a
case-insensitive substring test against the tool's names, description and
signature. Winners are rendered as the stub declarations the model will call
from ``exec``.

Examples:
    >>> clamp_limit(None)
    10
    >>> clamp_limit(500)
    50
    >>> parse_keywords(" Browser, ,chrome ")
    ['browser', 'chrome']
"""

# Standard
from typing import Any, Iterable, List, Sequence, Tuple

# First-Party
from mcphub.config import settings
from mcphub.hub.generator import GeneratedTool
from mcphub.hub.schemas import SearchResult


def clamp_limit(limit: Any) -> int:
    """Clamp a requested result count into ``[1, hub_search_max_limit]``.

    Args:
        limit: Requested count. Missing or non-numeric values fall back to
            ``hub_search_default_limit``.

    Returns:
        The effective limit.

    Examples:
        >>> clamp_limit(0)
        1
        >>> clamp_limit(-3)
        1
        >>> clamp_limit(7.9)
        7
        >>> clamp_limit("5")
        10
        >>> clamp_limit(True)
        10
    """
    if isinstance(limit, bool) or not isinstance(limit, (int, float)) or limit != limit:
        return settings.hub_search_default_limit
    return max(1, min(int(limit), settings.hub_search_max_limit))


def parse_keywords(query: str) -> List[str]:
    """Split a comma-separated query into lowercased, non-empty keywords.

    Args:
        query: Raw query text.

    Returns:
        Keywords in query order.
    """
    return [part.strip().lower() for part in query.split(",") if part.strip()]


def _haystack(tool: GeneratedTool) -> str:
    parts = [
        tool.tool_name,
        tool.function_name,
        tool.server_name,
        f"{tool.server_name}_{tool.tool_name}",
        tool.description or "",
        tool.signature,
    ]
    return " ".join(parts).lower()


def _level(candidate: str, keyword: str, exact: int, prefix: int, substring: int) -> int:
    if not candidate:
        return 0
    if candidate == keyword:
        return exact
    if candidate.startswith(keyword):
        return prefix
    if keyword in candidate:
        return substring
    return 0


def score_tool(tool: GeneratedTool, keywords: Sequence[str]) -> int:
    """Compute the relevance score of ``tool`` for ``keywords``.

    Per keyword: tool or function name exact/prefix/substring = 10/5/3,
    server name exact/prefix/substring = 8/4/2, plus the number of
    occurrences in the description capped at 3. Keyword scores are summed.

    Args:
        tool: Catalog entry.
        keywords: Lowercased keywords.

    Returns:
        Non-negative score.
    """
    tool_name = tool.tool_name.lower()
    function_name = tool.function_name.lower()
    server_name = tool.server_name.lower()
    description = (tool.description or "").lower()

    score = 0
    for keyword in keywords:
        score += max(_level(tool_name, keyword, 10, 5, 3), _level(function_name, keyword, 10, 5, 3))
        score += _level(server_name, keyword, 8, 4, 2)
        if description:
            score += min(description.count(keyword), 3)
    return score


def render_tools(tools: Iterable[GeneratedTool]) -> str:
    """Join the stub declarations of ``tools`` with blank lines.

    Args:
        tools: Catalog entries to render.

    Returns:
        Source text shown to the model.
    """
    return "\n\n".join(tool.source_text for tool in tools)


def search_tools(tools: Sequence[GeneratedTool], query: str, limit: Any = None) -> SearchResult:
    """Find the catalog entries matching ``query``.

    Args:
        tools: Generated catalog snapshot.
        query: Comma-separated keywords, OR semantics.
        limit: Maximum entries to render; clamped with :func:`clamp_limit`.

    Returns:
        SearchResult with the rendered winners and the pre-limit match count.
        An empty query returns the first ``limit`` entries unranked with
        ``total`` equal to the catalog size.
    """
    effective_limit = clamp_limit(limit)
    keywords = parse_keywords(query)

    if not keywords:
        return SearchResult(tools=render_tools(tools[:effective_limit]), total=len(tools))

    scored: List[Tuple[int, GeneratedTool]] = []
    for tool in tools:
        haystack = _haystack(tool)
        if any(keyword in haystack for keyword in keywords):
            scored.append((score_tool(tool, keywords), tool))

    # sorted() is stable, equal scores keep catalog order
    ranked = [tool for _, tool in sorted(scored, key=lambda item: item[0], reverse=True)]
    return SearchResult(tools=render_tools(ranked[:effective_limit]), total=len(ranked))
