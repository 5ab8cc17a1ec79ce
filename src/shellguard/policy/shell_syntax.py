"""Lightweight shell syntax helpers used by the classifier.

None of these functions execute or fully parse shell. They split a command
line into the pieces the pattern registry is matched against.
"""

from __future__ import annotations

import posixpath
import re
import shlex
from dataclasses import dataclass

SEPARATORS = frozenset({";", "&&", "||", "|", "&", "|&", ";;"})

_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_FALLBACK_SPLIT = re.compile(r"\s*(?:&&|\|\||;|\||(?<![<>&])&(?![>&]))\s*")
_SUBSTITUTION = re.compile(r"\$\(([^()]*)\)|`([^`]*)`|[<>]\(([^()]*)\)")


@dataclass(frozen=True)
class ParsedCommand:
    normalized: str
    command_type: str
    segments: tuple[str, ...]
    words: tuple[str, ...]
    tokenized: bool


def normalize(command: str) -> str:
    return command.strip()


def is_assignment(token: str) -> bool:
    return bool(_ASSIGNMENT.match(token))


def command_type(normalized: str) -> str:
    for token in normalized.split():
        if not is_assignment(token):
            return token
    return ""


def _tokenize(normalized: str) -> list[str]:
    lexer = shlex.shlex(normalized, posix=True, punctuation_chars=";&|<>")
    lexer.whitespace_split = True
    lexer.commenters = ""
    return list(lexer)


def _strip_assignments(words: list[str]) -> list[str]:
    index = 0
    while index < len(words) and is_assignment(words[index]):
        index += 1
    return words[index:]


def substitution_bodies(normalized: str) -> list[str]:
    bodies = []
    for match in _SUBSTITUTION.finditer(normalized):
        body = next((g for g in match.groups() if g is not None), "").strip()
        if body:
            bodies.append(body)
    return bodies


def parse(command: str) -> ParsedCommand:
    """Split a command line on shell control operators.

    Segments keep their words joined by single spaces with leading
    ``NAME=value`` assignments removed. Bodies of ``$(...)``, backtick and
    process substitutions are appended as extra segments. When the line
    cannot be tokenized (unbalanced quotes) a regex split is used instead
    and ``tokenized`` is False.
    """
    normalized = normalize(command)
    try:
        tokens = _tokenize(normalized)
        tokenized = True
    except ValueError:
        tokens = []
        tokenized = False

    segments: list[str] = []
    words: list[str] = []
    if tokenized:
        current: list[str] = []
        for token in tokens:
            if token in SEPARATORS:
                segments.append(" ".join(_strip_assignments(current)))
                current = []
            else:
                current.append(token)
                words.append(token)
        segments.append(" ".join(_strip_assignments(current)))
    else:
        for part in _FALLBACK_SPLIT.split(normalized):
            part_words = part.split()
            words.extend(part_words)
            segments.append(" ".join(_strip_assignments(part_words)))

    for body in substitution_bodies(normalized):
        segments.extend(parse(body).segments)

    return ParsedCommand(
        normalized=normalized,
        command_type=command_type(normalized),
        segments=tuple(s for s in segments if s),
        words=tuple(words),
        tokenized=tokenized,
    )


def path_arguments(words: tuple[str, ...]) -> list[str]:
    """Words that look like filesystem paths (including ``of=/dev/sda`` style values)."""
    paths = []
    for word in words:
        if "=" in word and not word.startswith(("/", ".", "~")):
            word = word.split("=", 1)[1]
        if not word or "://" in word or word.startswith("-"):
            continue
        if word.startswith(("/", "~", ".")) or "/" in word:
            paths.append(word)
    return paths


def resolve_path(path: str, cwd: str) -> str:
    path = posixpath.expanduser(path)
    return posixpath.normpath(posixpath.join(cwd or "/", path))


def is_within(path: str, directory: str) -> bool:
    directory = posixpath.normpath(directory)
    if directory == "/":
        return path == "/"
    return path == directory or path.startswith(directory + "/")
