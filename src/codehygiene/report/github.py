"""Pull request comment upsert over the GitHub REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import requests

from codehygiene.core.config import GitHubConfig
from codehygiene.core.log import logger

API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class CommentGatewayError(RuntimeError):
    """The comment API could not be reached or refused a request."""


@dataclass(frozen=True)
class Comment:
    id: int
    body: str
    url: str = ""


@runtime_checkable
class CommentGateway(Protocol):
    """Comment storage keyed by subject (pull request number)."""

    def find(self, subject: int, marker: str) -> Comment | None:
        """First comment on subject whose body contains marker."""
        ...

    def create(self, subject: int, body: str) -> Comment:
        ...

    def update(self, comment_id: int, body: str) -> Comment:
        ...


def upsert_comment(
    gateway: CommentGateway, subject: int, body: str, marker: str
) -> Comment:
    """Update the marked comment on subject, or create it.

    Raises:
        ValueError: If body does not contain marker; posting it would
            create a comment no later run can find
        CommentGatewayError: If the gateway fails
    """
    if not marker or marker not in body:
        raise ValueError("Comment body does not contain the marker")

    existing = gateway.find(subject, marker)
    if existing is not None:
        logger.info(f"Updating existing comment {existing.id}")
        return gateway.update(existing.id, body)

    logger.info("Creating new comment")
    return gateway.create(subject, body)


class GitHubCommentGateway:
    """Issue comments of one repository via requests."""

    def __init__(
        self,
        repository: str,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        session: requests.Session | None = None,
    ):
        """
        Args:
            repository: owner/name
            token: Token with permission to write issue comments
            api_url: REST API root (differs on GitHub Enterprise)
            timeout: Per-request timeout in seconds
            session: Session to send requests through (tests pass
                a fake)
        """
        if not repository or "/" not in repository:
            raise ValueError(f"Repository must be owner/name: {repository!r}")
        if not token:
            raise ValueError("A GitHub token is required to post comments")

        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    @classmethod
    def from_config(cls, config: GitHubConfig,
                    session: requests.Session | None = None):
        return cls(
            repository=config.repository or "",
            token=config.token or "",
            api_url=config.api_url,
            timeout=config.timeout,
            session=session,
        )

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise CommentGatewayError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise CommentGatewayError(
                f"{method} {url} returned HTTP {response.status_code}: "
                f"{response.text[:500]}"
            )
        return response

    @staticmethod
    def _comment(data: dict) -> Comment:
        return Comment(
            id=data["id"],
            body=data.get("body") or "",
            url=data.get("html_url") or "",
        )

    def find(self, subject: int, marker: str) -> Comment | None:
        url = f"{self.api_url}/repos/{self.repository}/issues/{subject}/comments"
        params = {"per_page": PAGE_SIZE}

        while url:
            response = self._request("GET", url, params=params)
            for data in response.json():
                if marker in (data.get("body") or ""):
                    return self._comment(data)
            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None
        return None

    def create(self, subject: int, body: str) -> Comment:
        url = f"{self.api_url}/repos/{self.repository}/issues/{subject}/comments"
        response = self._request("POST", url, json={"body": body})
        return self._comment(response.json())

    def update(self, comment_id: int, body: str) -> Comment:
        url = (
            f"{self.api_url}/repos/{self.repository}"
            f"/issues/comments/{comment_id}"
        )
        response = self._request("PATCH", url, json={"body": body})
        return self._comment(response.json())
