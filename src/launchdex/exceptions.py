"""
Launchdex Exception Hierarchy

Structured exceptions for clear error handling across the CLI, the
programmatic facade, and the MCP server.  Ordinary search outcomes (no
results, a superseded search) are never errors; these types only cover
configuration mistakes and collaborator failures.

Usage::

    from launchdex.exceptions import LaunchdexError, CatalogError

    try:
        store = CatalogStore.from_file(path, strict=True)
    except CatalogError:
        print("Run 'launchdex catalog build' first.")
    except LaunchdexError as exc:
        print(f"Launchdex error: {exc}")
"""


class LaunchdexError(Exception):
    """Base exception for all Launchdex errors."""


class ConfigError(LaunchdexError, ValueError):
    """Configuration is invalid (e.g. a negative limit or unknown backend).

    Inherits from ``ValueError`` so callers that validate input generically
    still catch it.
    """


class CatalogError(LaunchdexError):
    """The offline package catalog could not be read or parsed."""


class HistoryError(LaunchdexError):
    """Command history storage failed to load or persist entries."""


class ProviderError(LaunchdexError):
    """A program index or other provider collaborator failed."""


class SearchError(LaunchdexError):
    """Invalid arguments passed to a search entry point."""
