from collections.abc import Iterable

from canopus.config import CanopusConfig
from canopus.diagnostics import ConsistencyIssue
from canopus.github import ConsistencyFailure
from canopus.handles import GithubTeam, GithubUser


def config(**kwargs: bool) -> CanopusConfig:
    return CanopusConfig(github_organization="dotanuki-labs", **kwargs)


class AlwaysConsistent:
    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None:
        return None

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None:
        return None


class PanickingChecker:
    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None:
        raise AssertionError(f"unexpected consistency check for {user}")

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None:
        raise AssertionError(f"unexpected consistency check for {team}")


class PanickingPathWalker:
    def walk(self) -> set[str]:
        raise AssertionError("unexpected project walk")


class KnownGithubState:
    """Fake GitHub holding a fixed set of organization members and teams.

    `outsiders` exist on GitHub but belong to no organization.
    """

    def __init__(
        self,
        members: Iterable[str] = (),
        teams: Iterable[str] = (),
        outsiders: Iterable[str] = (),
        organization_listable: bool = True,
        organization_exists: bool = True,
    ) -> None:
        self.members = set(members)
        self.teams = set(teams)
        self.outsiders = set(outsiders)
        self.organization_listable = organization_listable
        self.organization_exists = organization_exists
        self.checked: list[str] = []

    async def check_user(
        self, organization: str, user: GithubUser
    ) -> ConsistencyFailure | None:
        self.checked.append(str(user))
        if not self.organization_exists:
            return ConsistencyFailure(
                issue=ConsistencyIssue.ORGANIZATION_DOES_NOT_EXIST,
                organization=organization,
            )
        if not self.organization_listable:
            return ConsistencyFailure(
                issue=ConsistencyIssue.CANNOT_LIST_ORG_MEMBERS,
                organization=organization,
            )
        if user.handle in self.members:
            return None
        issue = (
            ConsistencyIssue.OUTSIDER_USER
            if user.handle in self.outsiders
            else ConsistencyIssue.USER_DOES_NOT_EXIST
        )
        return ConsistencyFailure(issue=issue, organization=organization, owner=user)

    async def check_team(
        self, organization: str, team: GithubTeam
    ) -> ConsistencyFailure | None:
        self.checked.append(str(team))
        if team.organization != organization:
            return ConsistencyFailure(
                issue=ConsistencyIssue.TEAM_ORG_MISMATCH,
                organization=organization,
                owner=team,
            )
        if team.name in self.teams:
            return None
        return ConsistencyFailure(
            issue=ConsistencyIssue.TEAM_DOES_NOT_EXIST,
            organization=organization,
            owner=team,
        )
