from pathlib import Path

import pytest

from canopus.codeowners import (
    BlankLine,
    CodeOwners,
    CodeOwnersContext,
    Comment,
    OwnershipRule,
    parse_entry,
    render_entry,
    split_lines,
)
from canopus.diagnostics import CodeOwnersSyntaxError, invalid_syntax
from canopus.exceptions import CodeOwnersNotFoundError, MultipleCodeOwnersError
from canopus.handles import EmailAddress, GithubTeam, GithubUser

CODEOWNERS = """\
# Global ownership
*.rs    @dotanuki-labs/crabbers rust@dotanuki.dev

docs/   @ubiratansoares # docs owner
*.rs    @ubiratansoares
"""


def syntax_errors(content: str) -> list:
    with pytest.raises(CodeOwnersSyntaxError) as e:
        CodeOwners.parse(content)
    return e.value.diagnostics


def test_parse_blank_lines() -> None:
    assert parse_entry(0, "") == BlankLine()
    assert parse_entry(0, "   \t") == BlankLine()


def test_parse_comments() -> None:
    assert parse_entry(0, "# Global ownership") == Comment(text="Global ownership")
    assert parse_entry(0, "#") == Comment(text="")


def test_parse_rule() -> None:
    entry = parse_entry(3, "*.rs    @org/crabbers rust@dotanuki.dev")

    assert isinstance(entry, OwnershipRule)
    assert entry.line_number == 3
    assert entry.pattern == "*.rs"
    assert entry.owners == (
        GithubTeam(organization="org", name="crabbers"),
        EmailAddress(address="rust@dotanuki.dev"),
    )
    assert entry.inline_comment is None


@pytest.mark.parametrize(
    "line, comment",
    [
        ("docs/ @ubiratansoares # docs owner", "docs owner"),
        ("docs/ @ubiratansoares #docs owner", "docs owner"),
        ("docs/ @ubiratansoares # @ignored owner", "@ignored owner"),
    ],
)
def test_parse_inline_comment(line: str, comment: str) -> None:
    entry = parse_entry(0, line)

    assert isinstance(entry, OwnershipRule)
    assert entry.owners == (GithubUser(handle="ubiratansoares"),)
    assert entry.inline_comment == comment


@pytest.mark.parametrize(
    "line, messages",
    [
        ("*.rs    org/rustaceans", ["cannot parse owner"]),
        ("[z-a]*.rs    @org/crabbers", ["invalid glob pattern"]),
        ("[z-a]*.rs    org/crabbers", ["invalid glob pattern", "cannot parse owner"]),
        ("*.rs", ["expected non-empty owners list"]),
        ("*.rs # comment only", ["expected non-empty owners list"]),
        ("*.rs @org/crabbers #", ["expected non-empty comment"]),
        ("*.rs a b", ["cannot parse owner", "cannot parse owner"]),
    ],
)
def test_parse_entry_collects_every_issue(line: str, messages: list[str]) -> None:
    with pytest.raises(CodeOwnersSyntaxError) as e:
        parse_entry(7, line)

    assert e.value.diagnostics == [invalid_syntax(7, message) for message in messages]


def test_parse_document() -> None:
    codeowners = CodeOwners.parse(CODEOWNERS)

    assert len(codeowners.entries) == 5
    assert [rule.line_number for rule in codeowners.rules] == [1, 3, 4]
    assert codeowners.unique_owners() == [
        GithubTeam(organization="dotanuki-labs", name="crabbers"),
        EmailAddress(address="rust@dotanuki.dev"),
        GithubUser(handle="ubiratansoares"),
    ]
    assert codeowners.occurrences(GithubUser(handle="ubiratansoares")) == [3, 4]
    assert codeowners.first_occurrence(GithubUser(handle="ubiratansoares")) == 3
    assert codeowners.occurrences(GithubUser(handle="nobody")) == []


def test_ownership_index() -> None:
    codeowners = CodeOwners.parse("*.rs @ubiratansoares rust@dotanuki.dev")

    assert codeowners.occurrences(GithubUser(handle="ubiratansoares")) == [0]
    assert codeowners.occurrences(EmailAddress(address="rust@dotanuki.dev")) == [0]


def test_ownership_index_is_read_only() -> None:
    codeowners = CodeOwners.parse(CODEOWNERS)

    with pytest.raises(TypeError):
        codeowners.ownerships[GithubUser(handle="intruder")] = ()  # type: ignore[index]


def test_parse_document_collects_issues_of_every_line() -> None:
    content = "*.rs not-an-owner\n*.py @org/team\n[z-a] org/team\n"

    assert syntax_errors(content) == [
        invalid_syntax(0, "cannot parse owner"),
        invalid_syntax(2, "invalid glob pattern"),
        invalid_syntax(2, "cannot parse owner"),
    ]


def test_syntax_error_message_lists_diagnostics() -> None:
    with pytest.raises(CodeOwnersSyntaxError) as e:
        CodeOwners.parse("*.rs\n")

    assert str(e.value) == "L1 : expected non-empty owners list [structure]"


def test_render_entries() -> None:
    assert render_entry(BlankLine()) == ""
    assert render_entry(Comment(text="")) == "#"
    assert render_entry(Comment(text="owners")) == "# owners"
    entry = parse_entry(0, "docs/   @ubiratansoares   #  docs owner")
    assert render_entry(entry) == "docs/ @ubiratansoares # docs owner"


def test_parse_is_idempotent_over_rendering() -> None:
    codeowners = CodeOwners.parse(CODEOWNERS + "#\n")

    assert CodeOwners.parse(codeowners.render()) == codeowners


@pytest.mark.parametrize("location", [".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS"])
def test_context_from_project(tmp_path: Path, location: str) -> None:
    codeowners_location = tmp_path / location
    codeowners_location.parent.mkdir(parents=True, exist_ok=True)
    codeowners_location.write_text("*.rs @org/crabbers\n", encoding="utf-8")

    context = CodeOwnersContext.from_project(tmp_path)

    assert context.project_root == tmp_path
    assert context.location == codeowners_location
    assert context.contents == "*.rs @org/crabbers\n"


def test_context_without_codeowners(tmp_path: Path) -> None:
    with pytest.raises(CodeOwnersNotFoundError) as e:
        CodeOwnersContext.from_project(tmp_path)
    assert str(e.value) == "no CODEOWNERS definition found in the project"


def test_context_ignores_codeowners_directories(tmp_path: Path) -> None:
    (tmp_path / "CODEOWNERS").mkdir()

    with pytest.raises(CodeOwnersNotFoundError):
        CodeOwnersContext.from_project(tmp_path)


def test_context_with_multiple_codeowners(tmp_path: Path) -> None:
    (tmp_path / ".github").mkdir()
    (tmp_path / ".github" / "CODEOWNERS").write_text("*.rs @org/a\n", encoding="utf-8")
    (tmp_path / "CODEOWNERS").write_text("*.rs @org/b\n", encoding="utf-8")

    with pytest.raises(MultipleCodeOwnersError) as e:
        CodeOwnersContext.from_project(tmp_path)
    assert str(e.value) == "found multiple CODEOWNERS definitions"


@pytest.mark.parametrize(
    "content, expected",
    [
        ("", []),
        ("*.rs @a", ["*.rs @a"]),
        ("*.rs @a\n\n", ["*.rs @a", ""]),
        ("*.rs @a\r\n*.js @b\r\n", ["*.rs @a", "*.js @b"]),
        ("# docs\x0cpage\n*.rs @a\n", ["# docs\x0cpage", "*.rs @a"]),
        ("# owners\u2028more\x85\n*.rs @a\n", ["# owners\u2028more\x85", "*.rs @a"]),
    ],
)
def test_split_lines_only_on_newlines(content: str, expected: list[str]) -> None:
    assert split_lines(content) == expected


def test_parse_keeps_unicode_separators_inside_lines() -> None:
    codeowners = CodeOwners.parse("# docs\x0cpage\n# a\u2028b\n*.rs @a\n")

    assert codeowners.entries[0] == Comment(text="docs\x0cpage")
    assert [rule.line_number for rule in codeowners.rules] == [2]
    assert codeowners.occurrences(GithubUser(handle="a")) == [2]


def test_syntax_errors_point_to_newline_delimited_lines() -> None:
    assert syntax_errors("# a\u2028b\n*.rs\n") == [
        invalid_syntax(1, "expected non-empty owners list")
    ]
