"""Shell variables: the environment and the exported-declaration list."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping

from minishell.textutil import split


def is_identifier(name: str | None) -> bool:
    """True when ``name`` is a valid variable name."""
    if not name:
        return False
    first = name[0]
    if not (first == "_" or (first.isascii() and first.isalpha())):
        return False
    return all(char == "_" or (char.isascii() and char.isalnum()) for char in name[1:])


def parse_assignment(arg: str) -> tuple[str, str | None]:
    """Split ``KEY=VALUE`` into its parts; the value is None when there is no '='."""
    key, sep, value = arg.partition("=")
    return key, (value if sep else None)


class Environment:
    """Variables passed to commands plus the list shown by ``export``."""

    def __init__(self, variables: Mapping[str, str] | Iterable[tuple[str, str]] = ()):
        items = variables.items() if isinstance(variables, Mapping) else variables
        self._env: dict[str, str] = {}
        self._exported: dict[str, str | None] = {}
        for key, value in items:
            self._env.pop(key, None)
            self._env[key] = value
            self._exported[key] = value

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "Environment":
        """Build from a process environment (the current one by default)."""
        return cls(dict(os.environ if environ is None else environ))

    def get(self, key: str) -> str | None:
        return self._env.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._env

    def _check(self, key: str) -> None:
        if not is_identifier(key):
            raise ValueError(f"{key}: not a valid identifier")

    def set(self, key: str, value: str) -> None:
        """Assign and export a variable; a reassigned variable moves to the end."""
        self._check(key)
        self._env.pop(key, None)
        self._env[key] = value
        self._exported[key] = value

    def declare(self, key: str, value: str | None = None) -> None:
        """Mark a variable as exported without putting it in the environment."""
        self._check(key)
        self._exported[key] = value

    def unset(self, key: str) -> None:
        """Remove a variable from both the environment and the export list."""
        self._check(key)
        self._env.pop(key, None)
        self._exported.pop(key, None)

    def env_lines(self) -> list[str]:
        """Lines printed by ``env``, in assignment order."""
        return [f"{key}={value}" for key, value in self._env.items()]

    def export_lines(self) -> list[str]:
        """Lines printed by ``export`` with no arguments, sorted by name."""
        return [
            f'declare -x {key}="{"" if value is None else value}"'
            for key, value in sorted(self._exported.items())
        ]

    def to_envp(self) -> dict[str, str]:
        """The environment for a child process."""
        return dict(self._env)

    def path_dirs(self) -> list[str]:
        """Directories listed in PATH."""
        path = self._env.get("PATH")
        return split(path, ":") if path else []