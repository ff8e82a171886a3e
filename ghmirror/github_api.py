"""
GitHub API client for the personal mirror account.

"The API is just a door. Your token is the key. Don't lose it." — schema.cx
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import requests

from . import __version__
from .models import Config


class GitHubAPIError(Exception):
    """GitHub API error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RepositoryExistsError(GitHubAPIError):
    """The repository name is already taken on the account."""

    pass


class HostingAPI(ABC):
    """What the mirror workflows need from the hosting service."""

    @abstractmethod
    def repository_exists(self, owner: str, name: str) -> bool:
        """Check whether `owner/name` exists."""

    @abstractmethod
    def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = False,
        auto_init: bool = False,
    ) -> dict[str, Any]:
        """Create a repository on the authenticated account."""


class GitHubAPIClient(HostingAPI):
    """
    GitHub REST API v3 client.

    "They track everything. Might as well use their API." — schema.cx
    """

    API_VERSION = "2022-11-28"
    TIMEOUT = 30

    def __init__(self, config: Config) -> None:
        """Initialize the GitHub API client."""
        self.config = config
        self.base_url = config.api_url
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {config.token}",
            "X-GitHub-Api-Version": self.API_VERSION,
            "User-Agent": f"gh-mirror/{__version__}",
        })

    def __enter__(self) -> "GitHubAPIClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close session."""
        self.close()

    def close(self) -> None:
        """Close the HTTP session and release resources."""
        if self.session:
            self.session.close()

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, f"{self.base_url}{endpoint}", timeout=self.TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            raise GitHubAPIError(f"Request to GitHub failed: {e}") from e

    def _handle_response_error(self, response: requests.Response, action: str) -> None:
        """Handle API response errors with specific messages."""
        if response.ok:
            return

        error_data: dict[str, Any] = {}
        try:
            error_data = response.json()
        except ValueError:
            pass
        if not isinstance(error_data, dict):
            error_data = {}

        message = error_data.get("message", response.text)
        status = response.status_code

        if status == 401:
            raise GitHubAPIError(
                "Invalid or expired GitHub token. Please check GITHUB_TOKEN in your .env file",
                status,
            )
        if status == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                reset_time = self._format_reset_time(response.headers.get("X-RateLimit-Reset", "0"))
                raise GitHubAPIError(f"GitHub API rate limit exceeded. Resets at {reset_time}", status)
            raise GitHubAPIError(
                f"Insufficient permissions to {action}. "
                f"Ensure the token has the 'repo' scope. Details: {message}",
                status,
            )
        if status == 422 and self._is_name_taken(error_data):
            raise RepositoryExistsError(f"Repository name already exists: {message}", status)

        raise GitHubAPIError(f"Failed to {action} ({status}): {message}", status)

    @staticmethod
    def _is_name_taken(error_data: dict[str, Any]) -> bool:
        """Recognise GitHub's 'name already exists on this account' validation error."""
        for error in error_data.get("errors", []) or []:
            if isinstance(error, dict):
                text = f"{error.get('message', '')} {error.get('code', '')}"
            else:
                text = str(error)
            if "already exists" in text.lower():
                return True
        return "already exists" in str(error_data.get("message", "")).lower()

    @staticmethod
    def _format_reset_time(timestamp: str) -> str:
        """Format rate limit reset timestamp."""
        try:
            reset_dt = datetime.fromtimestamp(int(timestamp))
            return reset_dt.strftime("%Y-%m-%d %H:%M:%S")
        except (ValueError, OSError):
            return "unknown"

    def repository_exists(self, owner: str, name: str) -> bool:
        """
        Check whether a repository exists.

        Returns:
            True on 200, False on 404

        Raises:
            GitHubAPIError: For any other response
        """
        response = self._request("GET", f"/repos/{owner}/{name}")
        if response.status_code == 404:
            return False
        self._handle_response_error(response, f"look up {owner}/{name}")
        return True

    def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = False,
        auto_init: bool = False,
    ) -> dict[str, Any]:
        """
        Create a repository under the authenticated user.

        Raises:
            RepositoryExistsError: If the name is already taken
            GitHubAPIError: For any other failure
        """
        payload = {
            "name": name,
            "description": description,
            "private": private,
            "auto_init": auto_init,
        }
        response = self._request("POST", "/user/repos", json=payload)
        self._handle_response_error(response, f"create repository {name}")
        return response.json()
