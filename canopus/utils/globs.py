"""CODEOWNERS glob patterns.

Patterns follow the gitignore conventions GitHub applies to CODEOWNERS:

* a leading or inner `/` anchors the pattern at the project root,
  otherwise it matches at any depth
* `*` and `?` never cross a `/`, `**` does
* a pattern that matches a directory owns everything below it
* a trailing `/` only matches directories
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field


class InvalidGlobPatternError(ValueError):
    pass


def _translate_class(pattern: str, segment: str, start: int) -> tuple[str, int]:
    """Translate the `[...]` class opening at `start` within `segment`.

    Returns the regex class and the index right after the closing bracket.
    """
    index = start + 1
    negated = index < len(segment) and segment[index] in "!^"
    if negated:
        index += 1

    members = []
    # a leading `]` is a member, not the end of the class
    if index < len(segment) and segment[index] == "]":
        members.append(r"\]")
        index += 1

    while index < len(segment) and segment[index] != "]":
        char = segment[index]
        if char == "\\":
            index += 1
            if index == len(segment):
                break
            members.append(re.escape(segment[index]))
        elif char == "-":
            members.append("-")
        else:
            members.append(re.escape(char))
        index += 1

    if index >= len(segment):
        raise InvalidGlobPatternError(f"{pattern} : unclosed character class")
    if not members:
        raise InvalidGlobPatternError(f"{pattern} : empty character class")

    prefix = "[^/" if negated else "["
    return prefix + "".join(members) + "]", index + 1


def _translate_segment(pattern: str, segment: str) -> str:
    if "**" in segment:
        raise InvalidGlobPatternError(
            f"{pattern} : '**' must be a whole path component"
        )

    translated = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            translated.append("[^/]*")
        elif char == "?":
            translated.append("[^/]")
        elif char == "[":
            char_class, index = _translate_class(pattern, segment, index)
            translated.append(char_class)
            continue
        elif char == "\\":
            index += 1
            if index == len(segment):
                raise InvalidGlobPatternError(f"{pattern} : dangling escape")
            translated.append(re.escape(segment[index]))
        else:
            translated.append(re.escape(char))
        index += 1
    return "".join(translated)


def translate(pattern: str) -> str:
    """Translate a CODEOWNERS pattern into an anchored regular expression."""
    if not pattern:
        raise InvalidGlobPatternError("empty pattern")

    directory_only = pattern.endswith("/") and pattern != "/"
    body = pattern.rstrip("/") if directory_only else pattern
    anchored = body.startswith("/") or "/" in body.strip("/")
    body = body.lstrip("/")

    if not body:
        # "/" alone owns the whole project
        return r"^.*\Z"

    segments = body.split("/")
    parts = []
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:.*/)?")
            continue
        parts.append(_translate_segment(pattern, segment) + ("" if last else "/"))

    prefix = "" if anchored else "(?:.*/)?"
    if directory_only:
        suffix = "/.*"
    elif anchored and any(c in segments[-1] for c in "*?["):
        # "docs/*" owns the direct children of docs/ only
        suffix = ""
    else:
        suffix = "(?:/.*)?"
    return "^" + prefix + "".join(parts) + suffix + r"\Z"


@dataclass(frozen=True)
class GlobPattern:
    pattern: str
    regex: re.Pattern = field(compare=False, repr=False)

    @classmethod
    def compile(cls, pattern: str) -> "GlobPattern":
        try:
            regex = re.compile(translate(pattern), re.DOTALL)
        except re.error as e:
            raise InvalidGlobPatternError(f"{pattern} : {e}") from None
        return cls(pattern=pattern, regex=regex)

    def matches(self, path: str) -> bool:
        return self.regex.match(path.lstrip("/")) is not None

    def matches_any(self, paths: Iterable[str]) -> bool:
        return any(self.matches(path) for path in paths)

    def __str__(self) -> str:
        return self.pattern
