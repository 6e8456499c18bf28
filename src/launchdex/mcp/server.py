"""
Launchdex MCP Server

Exposes launcher search and command history as tools that AI agents can
invoke natively via the Model Context Protocol, plus a stats resource.

Start with::

    launchdex mcp                    # stdio transport (default)
    launchdex mcp --transport sse    # SSE transport

Or programmatically::

    from launchdex.mcp.server import create_server
    server = create_server()
    server.run()
"""

from __future__ import annotations

import json
import logging
from typing import Annotated

# FastMCP uses pydantic for validation, so Field should be available
# If ImportError occurs, it indicates the launchdex[mcp] extra wasn't installed
from pydantic import Field  # type: ignore[import-untyped]

from launchdex.core.config import LaunchdexConfig
from launchdex.core.formatter import ResultFormatter
from launchdex.core.models import TargetRef

logger = logging.getLogger(__name__)


def create_server(config: LaunchdexConfig | None = None, launcher=None):
    """
    Build and return a configured FastMCP server instance.

    All tool invocations share one :class:`~launchdex.client.Launchdex`,
    created on first use from *config* unless *launcher* is given.

    Args:
        config: Instance-based configuration.  Defaults to
            ``LaunchdexConfig.from_env()`` so that the server respects
            the same environment variables as the CLI.
        launcher: Pre-built facade (tests, embedding).

    Raises ``ImportError`` if ``fastmcp`` is not installed (install
    via ``pip install 'launchdex[mcp]'``).
    """
    from fastmcp import FastMCP  # type: ignore[import-untyped]

    cfg = config or LaunchdexConfig.from_env()
    state = {"launcher": launcher}

    mcp = FastMCP("Launchdex")

    def _launcher():
        if state["launcher"] is None:
            from launchdex.client import Launchdex
            state["launcher"] = Launchdex(config=cfg)
        return state["launcher"]

    def _home() -> str:
        return str(cfg.get_home_dir())

    # ==================================================================
    # Tool: search_launcher
    # ==================================================================

    @mcp.tool()
    def search_launcher(
        query: Annotated[
            str,
            Field(default="", description="What the user typed into the launcher: part of an application name, a package name, a previously run command, a URL, or a filesystem path. An empty query returns the most recent history entries.")
        ] = "",
        max_results: Annotated[
            int | None,
            Field(default=None, description="Maximum number of results to return. If None, uses the configured default (50).")
        ] = None,
    ) -> str:
        """Rank launcher candidates for a query.

        Returns:
            JSON array of results in rank order, each with kind
            (installed/catalog/history/url/file), title, subtitle and the
            action Enter would perform.
        """
        try:
            query = str(query) if query is not None else ""
            launcher = _launcher()
            results = launcher.search(query, max_results=max_results)
            return ResultFormatter.format_json(results, home=_home(), scores=launcher.last_scores)
        except Exception as e:
            return json.dumps({"error": str(e), "results": []}, allow_nan=False)

    # ==================================================================
    # Tools: history
    # ==================================================================

    @mcp.tool()
    def recent_commands(
        limit: Annotated[
            int | None,
            Field(default=None, description="Number of entries to return (default 8).")
        ] = None,
    ) -> str:
        """List the most recently launched commands, newest first."""
        try:
            results = _launcher().recent(limit)
            return ResultFormatter.format_json(results, home=_home())
        except Exception as e:
            return json.dumps({"error": str(e), "results": []}, allow_nan=False)

    @mcp.tool()
    def record_command(
        command: Annotated[
            str,
            Field(description="The text the user launched successfully.")
        ],
        display: Annotated[
            str | None,
            Field(default=None, description="Title to show for this entry (e.g. the application name).")
        ] = None,
        subtitle: Annotated[
            str | None,
            Field(default=None, description="Secondary line to show for this entry.")
        ] = None,
        target_kind: Annotated[
            str | None,
            Field(default=None, description="What the command launched: 'installed', 'catalog', 'url' or 'file'.")
        ] = None,
        target_key: Annotated[
            str | None,
            Field(default=None, description="Program path, catalog token, URL or file path matching target_kind.")
        ] = None,
    ) -> str:
        """Record a successfully launched command in history."""
        if (target_kind is None) != (target_key is None):
            return json.dumps({"error": "target_kind and target_key must be given together"})
        if target_kind is not None and target_kind not in TargetRef.KINDS:
            return json.dumps({"error": f"Unknown target_kind '{target_kind}'"})
        try:
            target = TargetRef(kind=target_kind, key=target_key) if target_kind else None
            entry = _launcher().record_success(command, display=display, subtitle=subtitle, target=target)
        except Exception as e:
            return json.dumps({"error": str(e)})
        if entry is None:
            return json.dumps({"error": "command must not be blank"})
        return json.dumps({"status": "recorded", "entry": entry.to_dict()})

    @mcp.tool()
    def forget_command(
        command: Annotated[
            str,
            Field(description="History command to remove (case-insensitive).")
        ],
    ) -> str:
        """Remove a command from history."""
        try:
            removed = _launcher().remove_history_entry(command)
        except Exception as e:
            return json.dumps({"error": str(e)})
        return json.dumps({"removed": removed, "command": command})

    # ==================================================================
    # Tool: health (readiness check)
    # ==================================================================

    @mcp.tool()
    def health() -> str:
        """Check that the Launchdex MCP server is running and responsive.

        Returns:
            JSON with status, version, program index backend and store sizes.
        """
        payload = {"status": "ok"}
        payload.update(_launcher().health())
        return json.dumps(payload)

    # ==================================================================
    # Resource: stats
    # ==================================================================

    @mcp.resource("launchdex://stats")
    def stats() -> str:
        """Catalog and history statistics."""
        return json.dumps(_launcher().stats(), indent=2)

    # ==================================================================
    # Prompt templates
    # ==================================================================

    @mcp.prompt()
    def open_application(name: str) -> str:
        """Pre-built prompt: find the best launcher result for an application."""
        return (
            f"Call search_launcher with query '{name}'. If the top result is an "
            "installed application, report its path; if it is a catalog package, "
            "report its homepage and that it is not installed. After the user "
            "confirms a launch, call record_command so it ranks higher next time."
        )

    return mcp
