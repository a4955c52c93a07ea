"""Running commands and pipelines."""

from __future__ import annotations

import copy
import io
import os
import stat
import subprocess
import sys
import tempfile
from collections.abc import Iterable
from typing import IO, Union

from minishell.builtins import ShellExit, is_builtin, run_builtin
from minishell.environment import Environment
from minishell.lexer import Cluster

_Result = Union[subprocess.Popen, int]


class CommandError(Exception):
    """A command could not be found or started."""

    def __init__(self, command: str, message: str, status: int):
        super().__init__(f"{command}: {message}")
        self.command = command
        self.message = message
        self.status = status


def resolve_command(name: str, env: Environment) -> str:
    """Find the file to run for ``name``.

    Names starting with '/' or '.' are checked as paths first; otherwise,
    and when such a path does not exist, the directories of PATH are searched.
    """
    if not name:
        raise CommandError(name, "command not found", 127)
    if name[0] in "/.":
        try:
            info = os.stat(name)
        except OSError:
            info = None
        if info is not None:
            if stat.S_ISREG(info.st_mode):
                if info.st_mode & stat.S_IXUSR:
                    return name
                raise CommandError(name, "permission denied", 126)
            if name == ".":
                raise CommandError(name, "filename argument required", 2)
            if name == "..":
                raise CommandError(name, "command not found", 127)
            raise CommandError(name, "is a directory", 126)
    for directory in env.path_dirs():
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    raise CommandError(name, "command not found", 127)


def exit_status(returncode: int) -> int:
    """Shell status for a child's return code; signals map to 128 + signal."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _report(name: str, message: str) -> None:
    sys.stderr.write(f"minishell: {name}: {message}\n")
    sys.stderr.flush()


def _bytes_source(data: bytes) -> IO[bytes]:
    source = tempfile.TemporaryFile()
    source.write(data)
    source.seek(0)
    return source


def _flush() -> None:
    sys.stdout.flush()
    sys.stderr.flush()


def _deliver(text: str, target: IO[bytes] | None) -> None:
    if target is None:
        sys.stdout.write(text)
        sys.stdout.flush()
    elif text:
        target.write(text.encode())
        target.flush()


def _start(argv: list[str], env: Environment, stdin, stdout) -> _Result:
    try:
        path = resolve_command(argv[0], env)
    except CommandError as exc:
        _report(exc.command, exc.message)
        return exc.status
    _flush()
    try:
        return subprocess.Popen(
            argv, executable=path, stdin=stdin, stdout=stdout, env=env.to_envp()
        )
    except OSError:
        _report(argv[0], "command not found")
        return 127


def _isolated_builtin(argv: list[str], env: Environment, status: int) -> tuple[int, str]:
    """Run a builtin as a pipeline stage, leaving the shell's state untouched."""
    scratch = copy.deepcopy(env)
    buffer = io.StringIO()
    cwd = os.getcwd()
    try:
        code = run_builtin(argv, scratch, buffer, sys.stderr, status)
    except ShellExit as exc:
        code = exc.status
    finally:
        os.chdir(cwd)
    return code, buffer.getvalue()


def _run_single(cluster: Cluster, env: Environment, status: int) -> int:
    if cluster.error is not None:
        _report(cluster.error.path, cluster.error.reason)
        return 1
    argv = cluster.argv
    if not argv:
        return 0
    red = cluster.redirections
    if is_builtin(argv[0]):
        buffer = io.StringIO()
        try:
            return run_builtin(argv, env, buffer, sys.stderr, status)
        finally:
            _deliver(buffer.getvalue(), red.stdout)
    heredoc_file = None
    stdin = red.stdin
    if stdin is None and red.uses_heredoc:
        stdin = heredoc_file = _bytes_source(red.heredoc.encode())
    try:
        result = _start(argv, env, stdin, red.stdout)
    finally:
        if heredoc_file is not None:
            heredoc_file.close()
    if isinstance(result, subprocess.Popen):
        return exit_status(result.wait())
    return result


def _run_stage(
    cluster: Cluster,
    env: Environment,
    status: int,
    upstream: IO[bytes] | None,
    is_last: bool,
) -> tuple[_Result, IO[bytes] | None]:
    def nothing() -> IO[bytes] | None:
        return None if is_last else _bytes_source(b"")

    if cluster.error is not None:
        _report(cluster.error.path, cluster.error.reason)
        return 1, nothing()
    if not cluster.argv:
        return 0, nothing()
    red = cluster.redirections
    if is_builtin(cluster.argv[0]):
        code, text = _isolated_builtin(cluster.argv, env, status)
        if red.stdout is not None:
            _deliver(text, red.stdout)
            return code, nothing()
        if is_last:
            _deliver(text, None)
            return code, None
        return code, _bytes_source(text.encode())

    heredoc_file = None
    stdin = red.stdin
    if stdin is None:
        if red.uses_heredoc:
            stdin = heredoc_file = _bytes_source(red.heredoc.encode())
        else:
            stdin = upstream
    if red.stdout is not None:
        stdout = red.stdout
    elif is_last:
        stdout = None
    else:
        stdout = subprocess.PIPE
    try:
        result = _start(cluster.argv, env, stdin, stdout)
    finally:
        if heredoc_file is not None:
            heredoc_file.close()
    if isinstance(result, subprocess.Popen) and stdout is subprocess.PIPE:
        return result, result.stdout
    return result, nothing()


def _run_many(clusters: list[Cluster], env: Environment, status: int) -> int:
    results: list[_Result] = []
    upstream: IO[bytes] | None = None
    last_index = len(clusters) - 1
    try:
        for index, cluster in enumerate(clusters):
            result, produced = _run_stage(
                cluster, env, status, upstream, index == last_index
            )
            if upstream is not None:
                upstream.close()
            upstream = produced
            results.append(result)
    finally:
        if upstream is not None:
            upstream.close()
        codes = [
            exit_status(item.wait()) if isinstance(item, subprocess.Popen) else item
            for item in results
        ]
    return codes[-1]


def run_pipeline(
    clusters: Iterable[Cluster], env: Environment, status: int = 0
) -> int:
    """Run the commands connected by pipes and return the last one's status.

    A lone builtin runs in the shell itself and may change its state or raise
    ShellExit; builtins inside a longer pipeline run on a copy of the state.
    The clusters' files are closed afterwards.
    """
    clusters = list(clusters)
    try:
        if not clusters:
            return status
        if len(clusters) == 1:
            return _run_single(clusters[0], env, status)
        return _run_many(clusters, env, status)
    finally:
        for cluster in clusters:
            cluster.close()