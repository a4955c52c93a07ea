"""Commands the shell runs itself rather than starting a program."""

from __future__ import annotations

import errno
import os
from typing import TextIO

from minishell.environment import Environment, is_identifier, parse_assignment
from minishell.textutil import atoi

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with the given status."""

    def __init__(self, status: int):
        super().__init__(status)
        self.status = status


def echo(args: list[str], out: TextIO) -> int:
    """Print the arguments separated by spaces; ``-n`` (or ``-nnn``) drops the newline."""
    newline = True
    words = list(args)
    while words and words[0].startswith("-n") and set(words[0][1:]) == {"n"}:
        newline = False
        words.pop(0)
    out.write(" ".join(words))
    if newline:
        out.write("\n")
    return 0


def pwd(out: TextIO, err: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"PWD: {exc.strerror}\n")
        return 1
    out.write(cwd + "\n")
    return 0


def _cd_error(directory: str, reason: str, err: TextIO) -> int:
    err.write(f"cd: {directory}: {reason}\n")
    return 1


def _change_dir(directory: str, err: TextIO) -> int:
    try:
        info = os.stat(directory)
    except OSError as exc:
        return _cd_error(directory, exc.strerror or str(exc), err)
    if not os.path.isdir(directory) or not _is_dir_mode(info.st_mode):
        return _cd_error(directory, os.strerror(errno.ENOTDIR), err)
    if not os.access(directory, os.R_OK):
        return _cd_error(directory, os.strerror(errno.EACCES), err)
    try:
        os.chdir(directory)
    except OSError as exc:
        return _cd_error(directory, exc.strerror or str(exc), err)
    return 0


def _is_dir_mode(mode: int) -> bool:
    import stat

    return stat.S_ISDIR(mode)


def _named_dir(env: Environment, name: str, out: TextIO, err: TextIO) -> int:
    directory = env.get(name)
    if directory is None:
        err.write(f"cd: {name} not set\n")
        return 1
    status = _change_dir(directory, err)
    if name == "OLDPWD":
        out.write(directory + "\n")
    return status


def _parent_dir(err: TextIO) -> int:
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
        return 1
    parent = cwd[: cwd.rfind("/")] if "/" in cwd else cwd
    return _change_dir(parent or "/", err)


def cd(env: Environment, args: list[str], out: TextIO, err: TextIO) -> int:
    """Change directory, updating PWD and OLDPWD on success."""
    try:
        old = os.getcwd()
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
        return 1
    if len(args) > 1:
        err.write("cd: too many arguments\n")
        return 1
    if not args:
        status = _named_dir(env, "HOME", out, err)
    elif args[0] == "-":
        status = _named_dir(env, "OLDPWD", out, err)
    elif args[0] == "..":
        status = _parent_dir(err)
    elif args[0] == ".":
        # The directory is left as it is, and the status is not cleared.
        status = 1
    else:
        status = _change_dir(args[0], err)
    if status == 0:
        env.set("OLDPWD", old)
        env.set("PWD", os.getcwd())
    return status


def print_env(env: Environment, out: TextIO) -> int:
    """Print every environment variable as ``KEY=VALUE``."""
    for line in env.env_lines():
        out.write(line + "\n")
    return 0


def _key_error(arg: str, command: str, err: TextIO) -> None:
    err.write(f"{command}: {arg}: not a valid identifier\n")


def export(env: Environment, args: list[str], out: TextIO, err: TextIO) -> int:
    """Export variables, or list the exported ones when given no arguments."""
    if not args:
        for line in env.export_lines():
            out.write(line + "\n")
        return 0
    status = 0
    for arg in args:
        key, value = parse_assignment(arg)
        if not is_identifier(key):
            _key_error(arg, "export", err)
            status = 1
            continue
        if value is None:
            env.declare(key, None)
        else:
            env.set(key, value)
    return status


def unset(env: Environment, args: list[str], err: TextIO) -> int:
    """Remove variables from the environment and the export list."""
    status = 0
    for key in args:
        if not is_identifier(key):
            _key_error(key, "unset", err)
            status = 1
            continue
        env.unset(key)
    return status


def _is_numeric(arg: str) -> bool:
    body = arg[1:] if arg[:1] in ("-", "+") else arg
    return all("0" <= char <= "9" for char in body)


def exit_shell(args: list[str], status: int, err: TextIO) -> int:
    """Leave the shell by raising ShellExit.

    Returns 1 without leaving when given more than one argument.
    """
    if len(args) > 1:
        err.write("minishell: exit: too many arguments\n")
        return 1
    if args:
        arg = args[0]
        if not _is_numeric(arg):
            err.write(f"minishell: exit: {arg}: numeric argument required\n")
            raise ShellExit(2)
        raise ShellExit(atoi(arg) % 256)
    raise ShellExit(status)


def is_builtin(name: str | None) -> bool:
    """True when ``name`` is a command the shell runs itself."""
    return name in BUILTINS


def run_builtin(
    argv: list[str], env: Environment, out: TextIO, err: TextIO, status: int = 0
) -> int:
    """Run a builtin command line and return its exit status."""
    if not argv or not is_builtin(argv[0]):
        raise ValueError(f"not a builtin: {argv[0] if argv else ''}")
    name, args = argv[0], list(argv[1:])
    if name == "echo":
        return echo(args, out)
    if name == "cd":
        return cd(env, args, out, err)
    if name == "pwd":
        return pwd(out, err)
    if name == "export":
        return export(env, args, out, err)
    if name == "unset":
        return unset(env, args, err)
    if name == "env":
        return print_env(env, out)
    return exit_shell(args, status, err)