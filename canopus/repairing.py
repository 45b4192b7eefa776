import logging
from collections.abc import Iterable

from canopus.codeowners import COMMENT_MARKER, CodeOwnersContext, split_lines
from canopus.diagnostics import ValidationIssue

PRESERVED_SUFFIX = "(preserved by canopus)"


def first_issue_per_line(issues: Iterable[ValidationIssue]) -> list[ValidationIssue]:
    """Keep the first issue of every flagged line, dropping non-attributable ones."""
    unique: dict[int, ValidationIssue] = {}
    for issue in issues:
        if issue.attributable:
            unique.setdefault(issue.line, issue)
    return [unique[line] for line in sorted(unique)]


def flagged_lines(issues: Iterable[ValidationIssue]) -> list[int]:
    return [issue.line for issue in first_issue_per_line(issues)]


def repair_contents(contents: str, lines: Iterable[int], remove_lines: bool) -> str:
    to_repair = set(lines)
    repaired = []
    for line_number, content in enumerate(split_lines(contents)):
        if line_number not in to_repair:
            repaired.append(content)
        elif not remove_lines:
            repaired.append(f"{COMMENT_MARKER} {content} {PRESERVED_SUFFIX}")
    return "\n".join(repaired) + "\n"


def repair_codeowners(
    context: CodeOwnersContext, lines: Iterable[int], remove_lines: bool
) -> None:
    repaired = repair_contents(context.contents, lines, remove_lines)
    context.location.write_text(repaired, encoding="utf-8")
    logging.info(f"Repaired CODEOWNERS at : {context.location}")
