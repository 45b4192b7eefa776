"""Owner handles referenced by CODEOWNERS rules.

Owners are immutable and hashable, so they can key the ownership index built
while parsing a CODEOWNERS file.
"""

import re

from pydantic import BaseModel

# From https://github.com/dead-claudia/github-limits
GITHUB_HANDLE_REGEX = re.compile(r"^[a-zA-Z\d](-?[a-zA-Z\d]){0,38}$")
GITHUB_TEAM_REGEX = re.compile(r"^[a-zA-Z\d](-?[a-zA-Z\d]){0,254}$")
EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

GITHUB_HANDLE_MAX_LENGTH = 39
GITHUB_TEAM_MAX_LENGTH = 255


class InvalidOwnerError(ValueError):
    pass


class GithubUser(BaseModel, frozen=True):
    handle: str

    def __str__(self) -> str:
        return f"@{self.handle}"


class GithubTeam(BaseModel, frozen=True):
    organization: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.organization}/{self.name}"

    def __str__(self) -> str:
        return f"@{self.slug}"


class EmailAddress(BaseModel, frozen=True):
    address: str

    def __str__(self) -> str:
        return self.address


Owner = GithubUser | GithubTeam | EmailAddress


def is_github_handle(value: str) -> bool:
    return (
        len(value) <= GITHUB_HANDLE_MAX_LENGTH
        and GITHUB_HANDLE_REGEX.match(value) is not None
    )


def parse_github_user(handle: str) -> GithubUser:
    if not is_github_handle(handle):
        raise InvalidOwnerError("invalid github handle")
    return GithubUser(handle=handle)


def parse_github_team(team_handle: str) -> GithubTeam:
    parts = team_handle.split("/")
    if len(parts) != 2:
        raise InvalidOwnerError("cannot parse github team handle")

    organization, name = parts
    if not is_github_handle(organization):
        raise InvalidOwnerError("invalid github handle")
    if len(name) > GITHUB_TEAM_MAX_LENGTH or not GITHUB_TEAM_REGEX.match(name):
        raise InvalidOwnerError("invalid github team handle")

    return GithubTeam(organization=organization, name=name)


def parse_email_address(address: str) -> EmailAddress:
    if not EMAIL_REGEX.match(address):
        raise InvalidOwnerError("cannot parse owner from email address")
    return EmailAddress(address=address)


def parse_owner(token: str) -> Owner:
    """Parse a single owner token from a CODEOWNERS rule.

    `@user` is a GitHub user, `@org/team` a GitHub team and anything else
    holding an `@` an email address.

    Raises:
        InvalidOwnerError: when the token is not a well-formed owner
    """
    if token.startswith("@"):
        normalized = token.removeprefix("@")
        if "/" in normalized:
            return parse_github_team(normalized)
        return parse_github_user(normalized)

    if "@" in token:
        return parse_email_address(token)

    raise InvalidOwnerError("cannot parse owner")
