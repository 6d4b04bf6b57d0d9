"""GitHub access for fetching pull request files and contents."""

from .client import GitHubClient, PullRequestFile

__all__ = ["GitHubClient", "PullRequestFile"]
