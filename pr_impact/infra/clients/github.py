from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import requests

from pr_impact.shared.errors import GitHubAPIError
from pr_impact.shared.types import GitHubPullRequest, GitHubPullRequestFile


logger = logging.getLogger(__name__)

FILES_PER_PAGE = 100


@dataclass(frozen=True)
class GitHubClientConfig:
    access_token: str
    api_base_url: str = "https://api.github.com"
    timeout_seconds: float = 10.0


class GitHubClient:
    def __init__(self, config: GitHubClientConfig) -> None:
        self._api_base_url = config.api_base_url.rstrip("/")
        self._access_token = config.access_token
        self._timeout_seconds = config.timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
    ) -> Tuple[Any, str | None]:
        """Returns the decoded body and the ``rel="next"`` page URL, if any."""
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            next_url = response.links.get("next", {}).get("url")
            return response.json(), next_url
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise GitHubAPIError(
                f"GitHub API request failed: {method} {url} status={status_code}"
            ) from exc
        except requests.RequestException as exc:
            raise GitHubAPIError(f"GitHub API request failed: {method} {url}") from exc
        except ValueError as exc:
            raise GitHubAPIError(f"GitHub API returned invalid JSON: {method} {url}") from exc

    def get_pull_request(self, *, owner: str, repo: str, pr_number: int) -> GitHubPullRequest:
        url = f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pr_number}"
        data, _ = self._request_json(method="GET", url=url)
        logger.info("Fetched pull request: repo=%s/%s, pr=%s", owner, repo, pr_number)

        if not isinstance(data, dict) or "title" not in data:
            raise GitHubAPIError("Invalid pull request response: missing 'title' field")
        return data  # type: ignore[return-value]

    def get_pull_request_files(
        self,
        *,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> List[GitHubPullRequestFile]:
        url: str | None = f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pr_number}/files"
        params: Dict[str, Any] | None = {"per_page": FILES_PER_PAGE}
        files: List[GitHubPullRequestFile] = []
        pages = 0

        while url is not None:
            data, url = self._request_json(method="GET", url=url, params=params)
            # the next link already carries the query string
            params = None
            pages += 1

            if not isinstance(data, list):
                raise GitHubAPIError("Invalid pull request files response: expected list")
            files.extend(data)

        logger.info(
            "Fetched pull request files: repo=%s/%s, pr=%s, files=%s, pages=%s",
            owner,
            repo,
            pr_number,
            len(files),
            pages,
        )
        return files
