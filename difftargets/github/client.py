"""
GitHub REST client — pull request files, file contents and existence probes.

Built on ``requests``. Transient failures (rate limits, 5xx, dropped
connections) are retried with jittered exponential backoff; anything else
is raised straight away as :class:`GitHubError`.
"""

from __future__ import annotations

import base64
import logging
import random
import time
from dataclasses import dataclass
from typing import Optional

import requests

from ..errors import GitHubError

logger = logging.getLogger(__name__)

_RETRY_STATUSES = {429, 500, 502, 503, 504}
_PAGE_SIZE = 100


@dataclass
class PullRequestFile:
    """One entry of ``GET /repos/{owner}/{repo}/pulls/{number}/files``."""
    filename: str
    status: str
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: Optional[str] = None
    previous_filename: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "PullRequestFile":
        return cls(
            filename=data["filename"],
            status=data.get("status", "modified"),
            additions=data.get("additions", 0),
            deletions=data.get("deletions", 0),
            changes=data.get("changes", 0),
            patch=data.get("patch") or None,
            previous_filename=data.get("previous_filename") or None,
        )


class GitHubClient:
    """Minimal read-only client for one repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._session = session or requests.Session()
        self._session.headers.update(self._headers(token))

    @staticmethod
    def _headers(token: str) -> dict:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}/repos/{self.owner}/{self.repo}/{path.lstrip('/')}"

    # ── Transport ──

    def _request(self, path: str, operation: str, params: Optional[dict] = None,
                 allow_404: bool = False) -> Optional[requests.Response]:
        """GET *path* with retries. Returns None on 404 when *allow_404*."""
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self._session.get(
                    self._url(path), params=params, timeout=(10, 60))
            except requests.RequestException as e:
                last_error = e
                logger.warning(
                    "[GitHub] %s failed on attempt %d/%d: %s",
                    operation, attempt, self.max_retries, e)
            else:
                if response.status_code == 404 and allow_404:
                    return None
                if response.status_code < 400:
                    return response
                if response.status_code not in _RETRY_STATUSES:
                    raise GitHubError(
                        f"{operation} failed: HTTP {response.status_code} "
                        f"{response.text[:200]}",
                        status=response.status_code,
                    )
                last_error = GitHubError(
                    f"HTTP {response.status_code}", status=response.status_code)
                logger.warning(
                    "[GitHub] %s got HTTP %d on attempt %d/%d",
                    operation, response.status_code, attempt, self.max_retries)

            if attempt < self.max_retries:
                # Jittered exponential backoff
                wait = self.retry_delay * (2 ** (attempt - 1))
                jitter = wait * 0.1 * random.random()
                time.sleep(wait + jitter)

        logger.error("[GitHub] %s failed after %d retries: %s",
                     operation, self.max_retries, last_error)
        status = last_error.status if isinstance(last_error, GitHubError) else None
        raise GitHubError(
            f"{operation} failed after {self.max_retries} retries: {last_error}",
            status=status,
        )

    # ── Public API ──

    def get_pull_request(self, number: int) -> dict:
        """Return the raw pull request payload."""
        logger.debug("[GitHub] Fetching PR #%d", number)
        return self._request(f"pulls/{number}", f"get_pull_request({number})").json()

    def list_pull_request_files(self, number: int) -> list[PullRequestFile]:
        """Return every changed file of PR *number*, following pagination."""
        logger.debug("[GitHub] Fetching files for PR #%d", number)
        files: list[PullRequestFile] = []
        page = 1
        while True:
            response = self._request(
                f"pulls/{number}/files",
                f"list_pull_request_files({number})",
                params={"per_page": _PAGE_SIZE, "page": page},
            )
            batch = response.json()
            files.extend(PullRequestFile.from_api(item) for item in batch)
            if len(batch) < _PAGE_SIZE:
                break
            page += 1
        return files

    def get_file_contents(self, ref: str, path: str) -> str:
        """Return the decoded text of *path* at *ref*."""
        logger.debug("[GitHub] Fetching file contents: %s@%s", path, ref)
        operation = f"get_file_contents({ref}, {path})"
        data = self._request(f"contents/{path}", operation, params={"ref": ref}).json()
        if isinstance(data, list):
            raise GitHubError(f"Expected file but got directory: {path}")

        content = data.get("content", "")
        if data.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8")
        return content

    def file_exists(self, ref: str, path: str) -> bool:
        """True if *path* exists at *ref*. Transport failures raise."""
        response = self._request(
            f"contents/{path}",
            f"file_exists({ref}, {path})",
            params={"ref": ref},
            allow_404=True,
        )
        return response is not None
