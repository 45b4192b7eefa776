"""CODEOWNERS parsing.

A CODEOWNERS file is parsed line by line into entries. Parsing never stops at
the first problem: every syntax diagnostic of every line is collected and a
document is only built when there are none.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from canopus.diagnostics import (
    CodeOwnersSyntaxError,
    ValidationIssue,
    invalid_syntax,
)
from canopus.exceptions import CodeOwnersNotFoundError, MultipleCodeOwnersError
from canopus.handles import InvalidOwnerError, Owner, parse_owner
from canopus.utils.globs import GlobPattern, InvalidGlobPatternError

CODEOWNERS_LOCATIONS = [
    ".github/CODEOWNERS",
    "CODEOWNERS",
    "docs/CODEOWNERS",
]

COMMENT_MARKER = "#"


def split_lines(content: str) -> list[str]:
    """Split on `\\n` only, dropping one trailing `\\r` per line.

    Other separators recognized by str.splitlines (form feeds, U+2028, ...)
    are part of the line they appear in.
    """
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


@dataclass(frozen=True)
class BlankLine:
    pass


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class OwnershipRule:
    line_number: int
    glob: GlobPattern
    owners: tuple[Owner, ...]
    inline_comment: str | None = None

    @property
    def pattern(self) -> str:
        return self.glob.pattern


CodeOwnersEntry = BlankLine | Comment | OwnershipRule


def parse_entry(line_number: int, raw_line: str) -> CodeOwnersEntry:
    """Parse one CODEOWNERS line.

    Raises:
        CodeOwnersSyntaxError: with every problem found on this line
    """
    line = raw_line.strip()
    if not line:
        return BlankLine()

    if line.startswith(COMMENT_MARKER):
        # a bare "#" is an empty, but valid, comment
        return Comment(text=line.lstrip(COMMENT_MARKER).strip())

    raw_pattern, *tokens = line.split()
    diagnostics: list[ValidationIssue] = []

    glob = None
    try:
        glob = GlobPattern.compile(raw_pattern)
    except InvalidGlobPatternError:
        diagnostics.append(invalid_syntax(line_number, "invalid glob pattern"))

    owners: list[Owner] = []
    owner_tokens = 0
    comment_tokens: list[str] = []
    inline_comment_detected = False

    for token in tokens:
        if inline_comment_detected:
            comment_tokens.append(token)
            continue

        if token.startswith(COMMENT_MARKER):
            inline_comment_detected = True
            remainder = token.removeprefix(COMMENT_MARKER)
            if remainder:
                comment_tokens.append(remainder)
            continue

        owner_tokens += 1
        try:
            owners.append(parse_owner(token))
        except InvalidOwnerError:
            diagnostics.append(invalid_syntax(line_number, "cannot parse owner"))

    if owner_tokens == 0:
        diagnostics.append(invalid_syntax(line_number, "expected non-empty owners list"))

    inline_comment = " ".join(comment_tokens)
    if inline_comment_detected and not inline_comment:
        diagnostics.append(invalid_syntax(line_number, "expected non-empty comment"))

    if diagnostics or glob is None:
        raise CodeOwnersSyntaxError(diagnostics)

    return OwnershipRule(
        line_number=line_number,
        glob=glob,
        owners=tuple(owners),
        inline_comment=inline_comment if inline_comment_detected else None,
    )


def render_entry(entry: CodeOwnersEntry) -> str:
    match entry:
        case BlankLine():
            return ""
        case Comment(text=text):
            return f"{COMMENT_MARKER} {text}" if text else COMMENT_MARKER
        case OwnershipRule():
            tokens = [entry.pattern, *(str(owner) for owner in entry.owners)]
            if entry.inline_comment is not None:
                tokens += [COMMENT_MARKER, entry.inline_comment]
            return " ".join(tokens)
    raise TypeError(f"unknown entry: {entry!r}")


@dataclass(frozen=True)
class OwnershipRecord:
    line_number: int
    pattern: str


@dataclass(frozen=True)
class CodeOwners:
    """A parsed CODEOWNERS document.

    `ownerships` indexes every owner, in order of first appearance, with the
    lines and patterns where it appears. It is built once by `parse` and is
    read-only afterwards.
    """

    entries: tuple[CodeOwnersEntry, ...]
    ownerships: Mapping[Owner, tuple[OwnershipRecord, ...]]

    @classmethod
    def parse(cls, content: str) -> "CodeOwners":
        entries: list[CodeOwnersEntry] = []
        ownerships: dict[Owner, list[OwnershipRecord]] = {}
        diagnostics: list[ValidationIssue] = []

        for line_number, line_contents in enumerate(split_lines(content)):
            try:
                entry = parse_entry(line_number, line_contents)
            except CodeOwnersSyntaxError as e:
                diagnostics.extend(e.diagnostics)
                continue

            entries.append(entry)
            if isinstance(entry, OwnershipRule):
                for owner in entry.owners:
                    record = OwnershipRecord(line_number, entry.pattern)
                    ownerships.setdefault(owner, []).append(record)

        if diagnostics:
            raise CodeOwnersSyntaxError(diagnostics)

        logging.debug(
            f"parsed {len(entries)} CODEOWNERS entries, {len(ownerships)} owners"
        )
        return cls(
            entries=tuple(entries),
            ownerships=MappingProxyType({
                owner: tuple(records) for owner, records in ownerships.items()
            }),
        )

    @property
    def rules(self) -> list[OwnershipRule]:
        return [entry for entry in self.entries if isinstance(entry, OwnershipRule)]

    def unique_owners(self) -> list[Owner]:
        return list(self.ownerships)

    def occurrences(self, owner: Owner) -> list[int]:
        return [record.line_number for record in self.ownerships.get(owner, ())]

    def first_occurrence(self, owner: Owner) -> int:
        return self.ownerships[owner][0].line_number

    def render(self) -> str:
        return "".join(render_entry(entry) + "\n" for entry in self.entries)


@dataclass(frozen=True)
class CodeOwnersContext:
    project_root: Path
    location: Path
    contents: str

    @staticmethod
    def locate(project_root: Path) -> Path:
        logging.info(f"Project location : {project_root}")
        candidates = [
            project_root / location
            for location in CODEOWNERS_LOCATIONS
            if (project_root / location).is_file()
        ]

        if not candidates:
            raise CodeOwnersNotFoundError(
                "no CODEOWNERS definition found in the project"
            )
        if len(candidates) > 1:
            raise MultipleCodeOwnersError("found multiple CODEOWNERS definitions")
        return candidates[0]

    @classmethod
    def from_project(cls, project_root: Path) -> "CodeOwnersContext":
        location = cls.locate(project_root)
        logging.info(f"Codeowners config found at : {location}")
        return cls(
            project_root=project_root,
            location=location,
            contents=location.read_text(encoding="utf-8"),
        )
