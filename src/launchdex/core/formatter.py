"""
Launchdex Result Formatting

Renders ranked results for the CLI and the MCP server: a boxed console
listing, JSON for tools and agent pipelines, and one line per result.
"""

import json
from typing import Dict, List, Optional

from launchdex.core.models import (
    SearchResult, display_name, identity_key, primary_action, result_to_dict, subtitle,
)


class ResultFormatter:
    """Format search results for different output modes."""

    _KIND_LABELS = {
        "installed": "App",
        "catalog": "Catalog",
        "history": "History",
        "url": "URL",
        "file": "File",
    }

    # ── Helpers ───────────────────────────────────────────────────

    @staticmethod
    def _label(result: SearchResult) -> str:
        label = ResultFormatter._KIND_LABELS.get(result.kind, result.kind)
        if result.kind == "history" and getattr(result, "is_recent", False):
            return "Recent"
        return label

    @staticmethod
    def _sanitize_for_json(s: Optional[str]) -> Optional[str]:
        """Strip control characters that can break strict JSON parsers."""
        if not s:
            return s
        return "".join(c for c in s if (ord(c) >= 32 and ord(c) != 127) or c in "\n\r\t")

    # ── Console (human-friendly) ──────────────────────────────────

    @staticmethod
    def format_console(results: List[SearchResult], home: str | None = None,
                       scores: Dict[str, int] | None = None,
                       elapsed_time: float | None = None,
                       title: str = "LAUNCHDEX") -> str:
        """
        Numbered listing with kind label, subtitle and the Enter action.

        Args:
            results: Ranked results.
            home: Home directory abbreviated to ``~`` in subtitles.
            scores: Optional ``{identity_key: score}`` map shown per row.
            elapsed_time: Optional search time in seconds for the header.
            title: Header label.
        """
        if not results:
            return "\n  No results found.\n"

        import shutil
        width = min(shutil.get_terminal_size().columns, 78)
        thin = "─" * width

        count = len(results)
        header = f"  {title} — {count} result{'s' if count != 1 else ''}"
        if elapsed_time is not None:
            header += f" in {elapsed_time:.4f} seconds"

        out: List[str] = [f"\n{thin}", header, thin]
        for idx, r in enumerate(results, start=1):
            label = ResultFormatter._label(r)
            line = f"  #{idx:<3} {display_name(r)}  [{label}]"
            if scores is not None:
                score = scores.get(identity_key(r))
                if score is not None:
                    line += f"  (score {score})"
            out.append(line)
            sub = subtitle(r, home)
            if sub:
                out.append(f"        {sub}")
            out.append(f"        ↵ {primary_action(r)}")
        out.append(f"{thin}")
        return "\n".join(out)

    # ── JSON ──────────────────────────────────────────────────────

    @staticmethod
    def format_json(results: List[SearchResult], home: str | None = None,
                    scores: Dict[str, int] | None = None) -> str:
        """Format results as a JSON list (one object per result, rank order)."""
        payload = []
        for rank, r in enumerate(results, start=1):
            obj = result_to_dict(r, home)
            obj["rank"] = rank
            obj["title"] = ResultFormatter._sanitize_for_json(obj["title"])
            obj["subtitle"] = ResultFormatter._sanitize_for_json(obj["subtitle"])
            if scores is not None:
                obj["score"] = scores.get(obj["identity"])
            payload.append(obj)
        return json.dumps(payload, indent=2, allow_nan=False)

    # ── Compact (one line per result) ─────────────────────────────

    @staticmethod
    def format_compact(results: List[SearchResult], home: str | None = None) -> str:
        if not results:
            return "No results found."

        lines: List[str] = []
        for r in results:
            sub = subtitle(r, home)
            tail = f"  {sub}" if sub else ""
            lines.append(f"{r.kind:<9} {display_name(r)}{tail}")
        return "\n".join(lines)
