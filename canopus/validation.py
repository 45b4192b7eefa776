"""CODEOWNERS validation.

Validation runs a fixed sequence of phases over an already parsed document.
Each phase returns a ValidationOutcome and the outcomes are merged, sorted by
line, into the final result.
"""

import asyncio
import logging
from collections.abc import Iterable

from canopus.codeowners import CodeOwners, CodeOwnersContext
from canopus.config import CanopusConfig
from canopus.diagnostics import (
    SENTINEL_LINE,
    CodeOwnersSyntaxError,
    ConfigurationIssue,
    ConsistencyIssue,
    IssueKind,
    IssuesDetected,
    StructuralIssue,
    ValidationIssue,
    ValidationOutcome,
    merge_outcomes,
    outcome_from,
)
from canopus.github import ConsistencyChecker, ConsistencyFailure
from canopus.handles import EmailAddress, GithubTeam, GithubUser, Owner
from canopus.utils.paths import PathWalker


def _issue(kind: IssueKind, line: int, message: str) -> ValidationIssue:
    return ValidationIssue.builder().kind(kind).line_number(line).message(message).build()


def check_dangling_globs(
    codeowners: CodeOwners, project_paths: Iterable[str]
) -> ValidationOutcome:
    paths = list(project_paths)
    rules = codeowners.rules
    matching = {rule.pattern for rule in rules if rule.glob.matches_any(paths)}

    issues = [
        _issue(
            StructuralIssue.DANGLING_GLOB_PATTERN,
            rule.line_number,
            f"{rule.pattern} does not match any project path",
        )
        for rule in rules
        if rule.pattern not in matching
    ]

    if issues:
        logging.info("Found patterns that won't match any existing project files")
    else:
        logging.info("Dangling glob patterns : not found")
    return outcome_from(issues)


def check_duplicate_ownerships(codeowners: CodeOwners) -> ValidationOutcome:
    lines_per_pattern: dict[str, list[int]] = {}
    for rule in codeowners.rules:
        lines_per_pattern.setdefault(rule.pattern, []).append(rule.line_number)

    issues = [
        _issue(
            StructuralIssue.DUPLICATE_OWNERSHIP,
            lines[0],
            f"{pattern} defined multiple times : lines {sorted(lines)}",
        )
        for pattern, lines in lines_per_pattern.items()
        if len(lines) > 1
    ]

    if issues:
        logging.info("Found some duplicated ownership rules")
    else:
        logging.info("Duplicated code owners : not found")
    return outcome_from(issues)


def check_one_owner_per_entry(codeowners: CodeOwners) -> ValidationOutcome:
    issues = [
        _issue(
            ConfigurationIssue.ONLY_ONE_OWNER_PER_ENTRY,
            rule.line_number,
            f"{rule.pattern} must have exactly one owner, found {len(rule.owners)}",
        )
        for rule in codeowners.rules
        if len(rule.owners) != 1
    ]
    return outcome_from(issues)


def check_owner_kinds(
    codeowners: CodeOwners, config: CanopusConfig
) -> ValidationOutcome:
    """Apply the owner-kind policy.

    Only GitHub teams allowed takes precedence over forbidding email owners,
    since the former already excludes emails.
    """
    issues = []
    if config.enforce_github_teams_owners:
        for owner in codeowners.unique_owners():
            if isinstance(owner, GithubTeam):
                continue
            issues.append(
                _issue(
                    ConfigurationIssue.ONLY_GITHUB_TEAM_OWNER_ALLOWED,
                    codeowners.first_occurrence(owner),
                    f"'{owner}' is not a GitHub team",
                )
            )
    elif config.forbid_email_owners:
        for owner in codeowners.unique_owners():
            if not isinstance(owner, EmailAddress):
                continue
            issues.append(
                _issue(
                    ConfigurationIssue.EMAIL_OWNER_FORBIDDEN,
                    codeowners.first_occurrence(owner),
                    f"'{owner}' email owners are not allowed",
                )
            )
    return outcome_from(issues)


def describe_failure(failure: ConsistencyFailure) -> str:
    owner = failure.owner
    organization = failure.organization
    match failure.issue:
        case ConsistencyIssue.USER_DOES_NOT_EXIST:
            return f"'{owner.handle}' user does not exist"
        case ConsistencyIssue.OUTSIDER_USER:
            return f"'{owner.handle}' user does not belong to this organization"
        case ConsistencyIssue.CANNOT_VERIFY_USER:
            return f"cannot confirm if user '{owner.handle}' exists"
        case ConsistencyIssue.TEAM_DOES_NOT_EXIST:
            return f"'{owner.name}' team does not belong to '{owner.organization}' organization"
        case ConsistencyIssue.CANNOT_VERIFY_TEAM:
            return f"cannot confirm whether '{owner.slug}' team exists"
        case ConsistencyIssue.TEAM_ORG_MISMATCH:
            return f"team '{owner.slug}' does not belong to this organization"
        case ConsistencyIssue.ORGANIZATION_DOES_NOT_EXIST:
            return f"'{organization}' organization does not exist"
        case ConsistencyIssue.CANNOT_LIST_ORG_MEMBERS:
            return f"failed to list members that belong to '{organization}' organization"
    raise TypeError(f"unknown consistency issue: {failure.issue!r}")


async def _check_owner(
    checker: ConsistencyChecker, organization: str, owner: Owner
) -> ConsistencyFailure | None:
    match owner:
        case GithubUser():
            return await checker.check_user(organization, owner)
        case GithubTeam():
            return await checker.check_team(organization, owner)
    return None


async def check_github_consistency(
    codeowners: CodeOwners, organization: str, checker: ConsistencyChecker
) -> ValidationOutcome:
    owners = codeowners.unique_owners()
    failures = await asyncio.gather(
        *[_check_owner(checker, organization, owner) for owner in owners]
    )

    issues: list[ValidationIssue] = []
    for failure in failures:
        if failure is None:
            continue
        line = (
            SENTINEL_LINE
            if failure.owner is None
            else codeowners.first_occurrence(failure.owner)
        )
        issue = _issue(failure.issue, line, describe_failure(failure))
        # organization-wide failures are reported by every user check
        if issue in issues:
            continue
        issues.append(issue)

    if issues:
        logging.info("Found GitHub consistency issues")
    else:
        logging.info("GitHub consistency issues : not found")
    return outcome_from(issues)


class CodeOwnersValidator:
    """Runs every validation phase over a CODEOWNERS document.

    Args:
        consistency_checker: verifies GitHub users and teams
        path_walker: lists the project paths globs are matched against
    """

    def __init__(
        self, consistency_checker: ConsistencyChecker, path_walker: PathWalker
    ) -> None:
        self.consistency_checker = consistency_checker
        self.path_walker = path_walker

    async def validate(
        self,
        codeowners: CodeOwners,
        project_paths: Iterable[str],
        config: CanopusConfig,
    ) -> ValidationOutcome:
        outcomes = [
            check_dangling_globs(codeowners, project_paths),
            check_duplicate_ownerships(codeowners),
        ]
        if config.enforce_one_owner_per_line:
            outcomes.append(check_one_owner_per_entry(codeowners))
        outcomes.append(check_owner_kinds(codeowners, config))

        if config.offline_checks_only:
            logging.info("Offline checks only : skipping GitHub consistency")
        else:
            outcomes.append(
                await check_github_consistency(
                    codeowners, config.github_organization, self.consistency_checker
                )
            )
        return merge_outcomes(outcomes)

    async def validate_project(
        self, context: CodeOwnersContext, config: CanopusConfig
    ) -> ValidationOutcome:
        try:
            codeowners = CodeOwners.parse(context.contents)
        except CodeOwnersSyntaxError as e:
            logging.info(f"Syntax errors : found {len(e.diagnostics)}")
            return IssuesDetected(issues=e.diagnostics)
        logging.info("Syntax errors : not found")

        return await self.validate(codeowners, self.path_walker.walk(), config)
