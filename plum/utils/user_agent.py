"""User-Agent generation for Plum HTTP requests.

Format: plum-marketplace-browser/{version} ({source})

Examples:
- CLI: plum-marketplace-browser/0.2.0 (cli)
- TUI: plum-marketplace-browser/0.2.0 (tui)
"""

from __future__ import annotations

import os
from typing import Literal

from plum import __version__

UserAgentSource = Literal["cli", "tui", "sdk-py"]

PLUM_CLIENT_SOURCE_ENV = "PLUM_CLIENT_SOURCE"

DEFAULT_SOURCE: UserAgentSource = "cli"


def get_client_source() -> UserAgentSource:
    """Get the client source type from environment or default."""
    source = os.environ.get(PLUM_CLIENT_SOURCE_ENV, "").lower()
    valid_sources: set[UserAgentSource] = {"cli", "tui", "sdk-py"}
    if source in valid_sources:
        return source  # type: ignore
    return DEFAULT_SOURCE


def build_user_agent(source: UserAgentSource | None = None) -> str:
    """Build the User-Agent header value.

    GitHub rejects API requests without a User-Agent, so every request sent by
    the transport carries this value.
    """
    if source is None:
        source = get_client_source()
    return f"plum-marketplace-browser/{__version__} ({source})"
