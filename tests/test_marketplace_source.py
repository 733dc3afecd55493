from __future__ import annotations

import pytest

from plum.core.marketplace import (
    InvalidSourceError,
    derive_source,
    extract_owner_repo,
    is_github_repo,
)


@pytest.mark.parametrize(
    ("repo_url", "expected"),
    [
        ("https://github.com/owner/repo", "owner/repo"),
        ("https://github.com/owner/repo/", "owner/repo"),
        ("https://github.com/owner/repo.git", "owner/repo"),
        ("https://github.com/owner/repo.git/", "owner/repo"),
        ("https://github.com/owner/repo/tree/main/plugins", "owner/repo"),
        ("https://gitlab.com/owner/repo", "https://gitlab.com/owner/repo"),
        ("https://git.example.org/team/catalog.git", "https://git.example.org/team/catalog.git"),
    ],
)
def test_derive_source_forms(repo_url: str, expected: str) -> None:
    assert derive_source(repo_url) == expected


@pytest.mark.parametrize(
    "repo_url",
    [
        "",
        "not a url",
        "github.com/owner/repo",
        "https://github.com/owner",
        "https://github.com/",
        "https://github.com//repo",
    ],
)
def test_derive_source_rejects_malformed_urls(repo_url: str) -> None:
    with pytest.raises(InvalidSourceError):
        derive_source(repo_url)


def test_is_github_repo() -> None:
    assert is_github_repo("https://github.com/owner/repo") is True
    assert is_github_repo("https://gitlab.com/owner/repo") is False
    assert is_github_repo("owner/repo") is False


def test_extract_owner_repo_accepts_url_and_shorthand() -> None:
    assert extract_owner_repo("https://github.com/docker/claude-plugins") == (
        "docker",
        "claude-plugins",
    )
    assert extract_owner_repo("https://github.com/docker/claude-plugins.git") == (
        "docker",
        "claude-plugins",
    )
    assert extract_owner_repo("docker/claude-plugins") == ("docker", "claude-plugins")

    with pytest.raises(InvalidSourceError):
        extract_owner_repo("https://github.com/docker")
