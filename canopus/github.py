"""GitHub consistency checks.

Verifies that the users and teams referenced in a CODEOWNERS file exist and
belong to the configured GitHub organization. Failed lookups are returned as
ConsistencyFailure values, never raised, so a validation run always completes.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol, Self

import httpx
import stamina

from canopus.diagnostics import ConsistencyIssue
from canopus.handles import GithubTeam, GithubUser

GH_BASE_URL = os.environ.get("GITHUB_API", "https://api.github.com")
GITHUB_TOKEN = "GITHUB_TOKEN"

TIMEOUT = 30
RETRY_ATTEMPTS = 3
PAGE_SIZE = 100

BASE_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": "canopus",
}


@dataclass(frozen=True)
class ConsistencyFailure:
    """A failed consistency check.

    `owner` is None when the failure concerns the whole organization rather
    than one owner.
    """

    issue: ConsistencyIssue
    organization: str
    owner: GithubUser | GithubTeam | None = None


class ConsistencyChecker(Protocol):
    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None: ...

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None: ...


class OfflineConsistencyChecker:
    """Stands in for GitHub when only offline checks are configured."""

    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None:
        return None

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None:
        return None


def is_not_found(error: httpx.HTTPError) -> bool:
    return (
        isinstance(error, httpx.HTTPStatusError)
        and error.response.status_code == httpx.codes.NOT_FOUND
    )


def is_transient(error: Exception) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status == httpx.codes.TOO_MANY_REQUESTS
    return isinstance(error, httpx.TransportError)


class GithubConsistencyChecker:
    """ConsistencyChecker backed by the GitHub REST API.

    Transient failures (transport errors, 5xx and 429 responses) are retried
    with exponential backoff before a check gives up.

    Args:
        token: GitHub token, read from GITHUB_TOKEN when not given
        base_url: GitHub API base URL
        timeout: request timeout in seconds
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GH_BASE_URL,
        timeout: int = TIMEOUT,
    ) -> None:
        token = token or os.environ.get(GITHUB_TOKEN)
        headers = dict(BASE_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logging.warning(
                f"{GITHUB_TOKEN} not set, GitHub API calls are unauthenticated"
            )
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @stamina.retry(on=is_transient, attempts=RETRY_ATTEMPTS)
    async def _get(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        response = await self._client.get(url, params=params)
        response.raise_for_status()
        return response

    async def _list(
        self, url: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every page of a paginated endpoint."""
        results: list[dict[str, Any]] = []
        next_url: str | None = url
        while next_url:
            response = await self._get(
                next_url, params=params if next_url == url else None
            )
            results.extend(response.json())
            next_url = response.links.get("next", {}).get("url")
        return results

    async def organization_members(self, organization: str) -> set[str]:
        members = await self._list(
            f"/orgs/{organization}/members", params={"per_page": PAGE_SIZE}
        )
        return {member["login"].lower() for member in members}

    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None:
        try:
            members = await self.organization_members(organization)
        except httpx.HTTPError as e:
            logging.error(f"cannot list members of {organization}: {e}")
            issue = (
                ConsistencyIssue.ORGANIZATION_DOES_NOT_EXIST
                if is_not_found(e)
                else ConsistencyIssue.CANNOT_LIST_ORG_MEMBERS
            )
            return ConsistencyFailure(issue=issue, organization=organization)
        except (ValueError, KeyError, TypeError) as e:
            # 2xx body that is not a JSON list of members
            logging.error(f"unexpected members listing for {organization}: {e!r}")
            return ConsistencyFailure(
                issue=ConsistencyIssue.CANNOT_LIST_ORG_MEMBERS,
                organization=organization,
            )

        if user.handle.lower() in members:
            return None

        try:
            await self._get(f"/users/{user.handle}")
        except httpx.HTTPError as e:
            logging.error(f"cannot find user {user.handle}: {e}")
            issue = (
                ConsistencyIssue.USER_DOES_NOT_EXIST
                if is_not_found(e)
                else ConsistencyIssue.CANNOT_VERIFY_USER
            )
            return ConsistencyFailure(
                issue=issue, organization=organization, owner=user
            )

        return ConsistencyFailure(
            issue=ConsistencyIssue.OUTSIDER_USER,
            organization=organization,
            owner=user,
        )

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None:
        if team.organization.lower() != organization.lower():
            return ConsistencyFailure(
                issue=ConsistencyIssue.TEAM_ORG_MISMATCH,
                organization=organization,
                owner=team,
            )

        try:
            await self._get(f"/orgs/{team.organization}/teams/{team.name}")
        except httpx.HTTPError as e:
            logging.error(f"cannot find team {team.slug}: {e}")
            issue = (
                ConsistencyIssue.TEAM_DOES_NOT_EXIST
                if is_not_found(e)
                else ConsistencyIssue.CANNOT_VERIFY_TEAM
            )
            return ConsistencyFailure(
                issue=issue, organization=organization, owner=team
            )

        return None
