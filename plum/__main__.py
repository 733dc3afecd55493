"""
Plum - plugin marketplace browser core

Discovers Claude Code plugin marketplaces hosted on GitHub, caches their
manifests on disk and exposes them to the browser UI and search engine.

Quick Start:
    pip install -e .
    python -m plum discover
"""

from plum.cli.cli import main

if __name__ == "__main__":
    main()
