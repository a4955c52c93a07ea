"""Turn token groups into commands with their redirections opened."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import BinaryIO

REDIRECTS = frozenset({">", "<", "<<", ">>"})

_OUTPUT_FLAGS = os.O_CREAT | os.O_TRUNC | os.O_RDWR
_APPEND_FLAGS = os.O_CREAT | os.O_APPEND | os.O_RDWR
_FILE_MODE = 0o777


class RedirectionError(Exception):
    """A redirection target could not be opened or was missing."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class Redirections:
    """Files and here-document text attached to one command."""

    input_path: str | None = None
    output_path: str | None = None
    append: bool = False
    heredoc: str = ""
    stdin: BinaryIO | None = field(default=None, repr=False)
    stdout: BinaryIO | None = field(default=None, repr=False)

    @property
    def uses_heredoc(self) -> bool:
        """True when input comes from the here-document rather than a file."""
        return bool(self.heredoc) and self.stdin is None

    def close(self) -> None:
        """Close any files that were opened."""
        for stream in (self.stdin, self.stdout):
            if stream is not None:
                stream.close()
        self.stdin = None
        self.stdout = None

    def __enter__(self) -> "Redirections":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class Cluster:
    """One command of a pipeline: its words, redirections and any open error."""

    argv: list[str]
    redirections: Redirections = field(default_factory=Redirections)
    error: RedirectionError | None = None

    def close(self) -> None:
        """Release the files held by the redirections."""
        self.redirections.close()

    def __enter__(self) -> "Cluster":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def is_redirect(token: str | None) -> bool:
    """True for the redirection operators ``<``, ``>``, ``<<`` and ``>>``."""
    return token in REDIRECTS


def command_words(tokens: Iterable[str]) -> list[str]:
    """The tokens that form the command, without operators and their targets."""
    words = []
    skip_next = False
    for token in tokens:
        if skip_next:
            skip_next = False
            continue
        if is_redirect(token):
            skip_next = True
            continue
        words.append(token)
    return words


def strip_quoted_redirects(words: Iterable[str]) -> list[str]:
    """Drop the surrounding quotes of words that hold a quoted ``<`` or ``>``."""
    cleaned = []
    for word in words:
        if ("<" in word or ">" in word) and ('"' in word or "'" in word):
            cleaned.append(word[1:-1])
        else:
            cleaned.append(word)
    return cleaned


def read_heredoc(delimiter: str, lines: Iterable[str]) -> str:
    """Collect lines up to (not including) the delimiter line.

    Each collected line ends with a newline. Lines after the delimiter are
    left unread in ``lines`` when it is an iterator.
    """
    collected = []
    for line in lines:
        line = line.removesuffix("\n")
        if line == delimiter:
            break
        collected.append(line + "\n")
    return "".join(collected)


def _redirect_pairs(tokens: list[str]) -> Iterator[tuple[str, str]]:
    stream = iter(tokens)
    for token in stream:
        if is_redirect(token):
            target = next(stream, None)
            if target is None:
                raise RedirectionError(token, "missing file name")
            yield token, target


def _open_write(path: str, append: bool) -> BinaryIO:
    fd = os.open(path, _APPEND_FLAGS if append else _OUTPUT_FLAGS, _FILE_MODE)
    return os.fdopen(fd, "ab" if append else "wb")


def _open_read(path: str) -> BinaryIO:
    fd = os.open(path, os.O_RDONLY)
    return os.fdopen(fd, "rb")


def open_redirections(
    tokens: Iterable[str], heredoc_lines: Iterable[str] = ()
) -> Redirections:
    """Read here-documents, then open the redirection files in order.

    Raises RedirectionError for the first file that cannot be opened; files
    opened before it are closed again.
    """
    tokens = list(tokens)
    pairs = list(_redirect_pairs(tokens))
    lines = iter(heredoc_lines)
    redirections = Redirections()
    for operator, target in pairs:
        if operator == "<<":
            redirections.heredoc = read_heredoc(target, lines)
    target = ""
    try:
        for operator, target in pairs:
            if operator == "<":
                if redirections.stdin is not None:
                    redirections.stdin.close()
                    redirections.stdin = None
                redirections.input_path = target
                redirections.stdin = _open_read(target)
            elif operator in (">", ">>"):
                if redirections.stdout is not None:
                    redirections.stdout.close()
                    redirections.stdout = None
                redirections.output_path = target
                redirections.append = operator == ">>"
                redirections.stdout = _open_write(target, redirections.append)
    except OSError as exc:
        redirections.close()
        raise RedirectionError(target, exc.strerror or str(exc)) from exc
    return redirections


def build_cluster(tokens: Iterable[str], heredoc_lines: Iterable[str] = ()) -> Cluster:
    """Build one command from its tokens; raises RedirectionError on failure."""
    tokens = list(tokens)
    argv = strip_quoted_redirects(command_words(tokens))
    return Cluster(argv, open_redirections(tokens, heredoc_lines))


def build_clusters(
    groups: Iterable[Iterable[str]], heredoc_lines: Iterable[str] = ()
) -> list[Cluster]:
    """Build every command of a pipeline.

    All here-documents read from the same stream of lines. A command whose
    redirections fail is kept with its ``error`` set and nothing opened.
    """
    lines = iter(heredoc_lines)
    clusters = []
    for group in groups:
        tokens = list(group)
        try:
            clusters.append(build_cluster(tokens, lines))
        except RedirectionError as exc:
            argv = strip_quoted_redirects(command_words(tokens))
            clusters.append(Cluster(argv, Redirections(), error=exc))
    return clusters