"""Shared utilities (repository reference parsing)."""

import re

_GITHUB_URL_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")
_OWNER_REPO_RE = re.compile(r"^([^/]+)/([^/]+)$")


def parse_repo_ref(text: str) -> tuple[str, str] | None:
    """Parse "owner/repo" or a GitHub URL into (owner, repo).

    A trailing ".git" on URLs is dropped. Returns None when the input
    matches neither form.
    """
    if not text or not text.strip():
        return None
    s = text.strip()
    m = _GITHUB_URL_RE.search(s)
    if m:
        repo = re.sub(r"\.git$", "", m.group(2))
        return m.group(1), repo
    m = _OWNER_REPO_RE.match(s)
    if m:
        return m.group(1), m.group(2)
    return None


def repo_slug(text: str) -> str:
    """Normalize a repo reference to "owner/repo".

    Raises:
        ValueError: If text is not a recognizable repository reference.
    """
    parsed = parse_repo_ref(text)
    if parsed is None:
        raise ValueError(f"Not a repository reference: {text!r}")
    return f"{parsed[0]}/{parsed[1]}"
