"""Validation diagnostics and outcomes.

Every check phase returns a ValidationOutcome, so phases can be merged
without knowing what each of them inspects.
"""

import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

# Issues that cannot be attributed to a single line are anchored here
SENTINEL_LINE = sys.maxsize


class StructuralIssue(StrEnum):
    INVALID_SYNTAX = "invalid-syntax"
    DANGLING_GLOB_PATTERN = "dangling-glob-pattern"
    DUPLICATE_OWNERSHIP = "duplicate-ownership"


class ConsistencyIssue(StrEnum):
    USER_DOES_NOT_EXIST = "user-does-not-exist"
    TEAM_DOES_NOT_EXIST = "team-does-not-exist"
    OUTSIDER_USER = "outsider-user"
    ORGANIZATION_DOES_NOT_EXIST = "organization-does-not-exist"
    CANNOT_VERIFY_USER = "cannot-verify-user"
    CANNOT_VERIFY_TEAM = "cannot-verify-team"
    CANNOT_LIST_ORG_MEMBERS = "cannot-list-org-members"
    TEAM_ORG_MISMATCH = "team-org-mismatch"


class ConfigurationIssue(StrEnum):
    EMAIL_OWNER_FORBIDDEN = "email-owner-forbidden"
    ONLY_GITHUB_TEAM_OWNER_ALLOWED = "only-github-team-owner-allowed"
    ONLY_ONE_OWNER_PER_ENTRY = "only-one-owner-per-entry"


IssueKind = StructuralIssue | ConsistencyIssue | ConfigurationIssue


def category(kind: IssueKind) -> str:
    match kind:
        case StructuralIssue():
            return "structure"
        case ConsistencyIssue():
            return "consistency"
        case ConfigurationIssue():
            return "configuration"
    raise TypeError(f"unknown issue kind: {kind!r}")


class IncompleteIssueError(Exception):
    pass


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    line: int
    message: str

    @classmethod
    def builder(cls) -> "ValidationIssueBuilder":
        return ValidationIssueBuilder()

    @property
    def category(self) -> str:
        return category(self.kind)

    @property
    def attributable(self) -> bool:
        return self.line != SENTINEL_LINE

    def __str__(self) -> str:
        location = f"L{self.line + 1}" if self.attributable else "Preconditions"
        return f"{location} : {self.message} [{self.category}]"


class ValidationIssueBuilder:
    def __init__(self) -> None:
        self._kind: IssueKind | None = None
        self._line: int | None = None
        self._message: str | None = None

    def kind(self, kind: IssueKind) -> Self:
        self._kind = kind
        return self

    def line_number(self, line: int) -> Self:
        self._line = line
        return self

    def message(self, message: str) -> Self:
        self._message = message
        return self

    def build(self) -> ValidationIssue:
        if self._kind is None:
            raise IncompleteIssueError("missing diagnostic kind")
        if self._line is None:
            raise IncompleteIssueError("missing related line in codeowners file")
        if self._message is None:
            raise IncompleteIssueError("missing context for this diagnostic")
        return ValidationIssue(kind=self._kind, line=self._line, message=self._message)


def invalid_syntax(line: int, message: str) -> ValidationIssue:
    return (
        ValidationIssue.builder()
        .kind(StructuralIssue.INVALID_SYNTAX)
        .line_number(line)
        .message(message)
        .build()
    )


def sort_issues(issues: Iterable[ValidationIssue]) -> list[ValidationIssue]:
    # sorted() is stable: issues on the same line keep their production order
    return sorted(issues, key=lambda issue: issue.line)


@dataclass(frozen=True)
class NoIssues:
    @property
    def issues(self) -> list[ValidationIssue]:
        return []


@dataclass(frozen=True)
class IssuesDetected:
    issues: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.issues:
            raise ValueError("IssuesDetected requires at least one issue")


ValidationOutcome = NoIssues | IssuesDetected


def outcome_from(issues: Iterable[ValidationIssue]) -> ValidationOutcome:
    found = sort_issues(issues)
    if not found:
        return NoIssues()
    return IssuesDetected(issues=found)


def merge_outcomes(outcomes: Iterable[ValidationOutcome]) -> ValidationOutcome:
    """Merge phase outcomes, in phase execution order, into a single one."""
    return outcome_from(issue for outcome in outcomes for issue in outcome.issues)


class CodeOwnersSyntaxError(Exception):
    """Raised when a CODEOWNERS file has at least one syntax error.

    Carries every syntax diagnostic found in the file, sorted by line.
    """

    def __init__(self, diagnostics: Iterable[ValidationIssue]) -> None:
        self.diagnostics = sort_issues(diagnostics)
        super().__init__("\n".join(str(d) for d in self.diagnostics))
