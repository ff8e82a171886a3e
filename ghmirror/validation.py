"""
Input validation utilities for gh-mirror.

"Trust, but verify. Especially user input." — schema.cx
"""

import re
from urllib.parse import urlparse


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass


# GitHub's allowed characters for owner and repository names
GITHUB_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")

# scp-style ssh URL: git@host:owner/repo(.git)
SCP_URL_PATTERN = re.compile(r"^[\w.-]+@(?P<host>[^:/]+):(?P<path>.+)$")


def extract_repo_name(url: str) -> str:
    """
    Derive a mirror name from a source URL (basename without ``.git``).

    Examples:
        "https://github.com/alice/foo.git" -> "foo"
        "git@github.com:alice/foo" -> "foo"
    """
    trimmed = url.strip().rstrip("/")
    basename = re.split(r"[/:]", trimmed)[-1]
    if basename.endswith(".git"):
        basename = basename[: -len(".git")]
    return basename


def validate_repo_name(name: str) -> str:
    """
    Validate a mirror name.

    The name is used both as the hosted repository name and as a directory in
    the mirror store, so it must be safe for both.

    Raises:
        ValidationError: If the name is empty, too long or contains
            disallowed characters
    """
    if not name or not isinstance(name, str):
        raise ValidationError("Repository name must be a non-empty string")

    if name in (".", ".."):
        raise ValidationError(f"'{name}' is a reserved name")

    if len(name) > 100:  # GitHub repo name max length
        raise ValidationError(f"Repository name too long (max 100 characters): '{name}'")

    if not GITHUB_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid repository name '{name}'. "
            "Only alphanumeric characters, '.', '-', and '_' are allowed."
        )

    return name


def parse_repo_owner(url: str, host: str = "github.com") -> tuple[str, str] | None:
    """
    Parse ``(owner, repo)`` out of a source URL on `host`.

    Handles https URLs and scp-style ssh URLs. Returns None when the URL is
    not on `host` or does not have an owner/repo path.
    """
    url = url.strip()
    url_host: str | None = None
    path = ""

    scp_match = SCP_URL_PATTERN.match(url)
    if scp_match and "://" not in url:
        url_host = scp_match.group("host")
        path = scp_match.group("path")
    else:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https", "ssh", "git"):
            return None
        url_host = parsed.hostname
        path = parsed.path

    if not url_host or url_host.lower() != host.lower():
        return None

    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2:
        return None

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


def check_not_self_mirror(source_url: str, username: str, host: str = "github.com") -> bool:
    """
    Refuse to mirror a repository the operator already owns.

    Returns:
        True if the owner could be determined and differs from `username`,
        False if the URL could not be parsed (caller decides how to proceed)

    Raises:
        ValidationError: If the source repository belongs to `username`
    """
    parsed = parse_repo_owner(source_url, host)
    if parsed is None:
        return False

    owner, _ = parsed
    if owner.lower() == username.lower():
        raise ValidationError(
            f"Cannot mirror your own repository: {source_url} "
            f"(the source repository already belongs to {username})"
        )
    return True


def validate_github_token(token: str | None) -> str | None:
    """
    Validate GitHub personal access token format.

    Args:
        token: GitHub PAT token string or None

    Returns:
        The token if valid, None if token is None or empty

    Raises:
        ValidationError: If token format is invalid

    Note:
        GitHub classic tokens start with 'ghp_' (40 chars total)
        GitHub fine-grained tokens start with 'github_pat_' (varies in length)
    """
    if token is None or token == "":
        return None

    if not isinstance(token, str):
        raise ValidationError("Token must be a string")

    if len(token) < 10:
        raise ValidationError("Token is too short to be valid")

    if len(token) > 255:
        raise ValidationError("Token is too long")

    if any(c in token for c in [" ", "\n", "\r", "\t"]):
        raise ValidationError("Token contains invalid whitespace characters")

    return token
