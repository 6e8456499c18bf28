#!/usr/bin/env python3
"""
Manually exercise the Launchdex Python API against this machine.

Runs a few searches, records a launch, shows how history changes the
ranking, and finally shows the empty-query recents view.  Uses a
throwaway data directory so your real history is untouched.

Usage:
  python scripts/try_api.py
  python scripts/try_api.py safari "visual studio" example.com ~/

  # Use a catalog built with `launchdex catalog build`
  python scripts/try_api.py --catalog ~/.launchdex/catalog.json code

Requirements:
  - Launchdex installed (pip install -e . from project root)
"""

import sys
import tempfile
import threading
from pathlib import Path

# Optional: use src layout so "launchdex" is the package
_src = Path(__file__).resolve().parent.parent / "src"
if _src.exists() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))


def _print_results(launcher, results, limit=5):
    from launchdex.core.models import display_name, identity_key, subtitle

    home = str(launcher.config.get_home_dir())
    scores = launcher.last_scores
    for i, r in enumerate(results[:limit], 1):
        score = scores.get(identity_key(r))
        tail = f"  score={score}" if score is not None else ""
        print(f"    {i}. [{r.kind}] {display_name(r)}{tail}")
        sub = subtitle(r, home)
        if sub:
            print(f"         {sub}")
    if not results:
        print("    (no results)")


def main() -> None:
    import argparse
    from launchdex import Launchdex, LaunchdexConfig

    parser = argparse.ArgumentParser(
        description="Manually test the Launchdex API: search, record, re-rank.",
    )
    parser.add_argument("queries", nargs="*", default=["code", "safari", "example.com", "~/"],
                        help="Queries to run (default: code safari example.com ~/)")
    parser.add_argument("--catalog", default=None, help="Catalog JSON to load")
    parser.add_argument("--program-index", default="auto",
                        choices=["auto", "mdfind", "scan", "none"],
                        help="Installed-program backend (default: auto)")
    args = parser.parse_args()

    data_dir = tempfile.mkdtemp(prefix="launchdex-try-")
    config = LaunchdexConfig(
        data_dir=data_dir,
        catalog_path=args.catalog,
        program_index=args.program_index,
    )

    with Launchdex(config=config) as launcher:
        stats = launcher.stats()
        print(f"Program index: {stats['program_index']}, "
              f"catalog entries: {stats['catalog']['entries']}, data dir: {data_dir}\n")

        # ── Search ────────────────────────────────────────────────────
        print("=" * 60)
        print("  STEP 1: Search")
        print("=" * 60)
        first_hit = None
        for q in args.queries:
            print(f"\n  Query: \"{q}\"")
            results = launcher.search(q, max_results=10)
            _print_results(launcher, results)
            if first_hit is None and results:
                first_hit = (q, results[0])

        if first_hit is None:
            print("\n  Nothing to record; done.")
            return

        # ── Record & re-rank ──────────────────────────────────────────
        q, hit = first_hit
        print("\n" + "=" * 60)
        print("  STEP 2: Record a launch and search again")
        print("=" * 60)
        entry = launcher.record_success(q, target=hit)
        print(f"  Recorded '{entry.command}' -> {entry.target}")
        print(f"\n  Query: \"{q}\"")
        _print_results(launcher, launcher.search(q, max_results=10))

        # ── Keystroke-style async search ──────────────────────────────
        print("\n" + "=" * 60)
        print("  STEP 3: Keystrokes (only the last one delivers)")
        print("=" * 60)
        done = threading.Event()
        delivered = []

        def on_results(results):
            delivered.append(results)
            done.set()

        for i in range(1, len(q) + 1):
            launcher.search_async(q[:i], on_results)
        done.wait(10.0)
        print(f"  Callbacks fired: {len(delivered)}")
        if delivered:
            _print_results(launcher, delivered[-1])

        # ── Recents ───────────────────────────────────────────────────
        print("\n" + "=" * 60)
        print("  STEP 4: Empty query (recents)")
        print("=" * 60)
        _print_results(launcher, launcher.search(""))

    print("\n" + "=" * 60)
    print("  Done. Try your own queries in Python:")
    print("    from launchdex import Launchdex")
    print("    launcher = Launchdex()")
    print("    launcher.search('your query')")
    print("=" * 60)


if __name__ == "__main__":
    main()
