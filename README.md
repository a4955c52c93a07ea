# minishell

A Python library with the pieces a small POSIX-style shell needs after a
command line has been split into words: the builtin commands, a variable
table, redirections with here-documents, and a pipeline runner that starts
programs as child processes.

## Modules

| Module | What it holds |
| --- | --- |
| `minishell.textutil` | String helpers: `atoi`, `itoa`, `split`, `strtrim`, `substr`, `strnstr`, `strncmp`, `strcmp` |
| `minishell.environment` | `Environment`, `is_identifier`, `parse_assignment` |
| `minishell.builtins` | `echo`, `pwd`, `cd`, `print_env`, `export`, `unset`, `exit_shell`, `is_builtin`, `run_builtin`, `ShellExit` |
| `minishell.lexer` | `Cluster`, `Redirections`, `RedirectionError`, `is_redirect`, `command_words`, `strip_quoted_redirects`, `read_heredoc`, `open_redirections`, `build_cluster`, `build_clusters` |
| `minishell.executor` | `run_pipeline`, `resolve_command`, `exit_status`, `CommandError` |

## Environment

`Environment` keeps two views of the variables:

- the environment passed to child processes (`env_lines()`, `to_envp()`),
  in assignment order; a reassigned variable moves to the end;
- the export list (`export_lines()`), every declared name sorted and printed
  as `declare -x NAME="value"`. `declare(key)` adds a name to this list only.

`set`, `declare` and `unset` raise `ValueError` for a name that is not a
valid identifier. `path_dirs()` returns the non-empty entries of `PATH`.
`Environment.from_environ()` builds a table from `os.environ` or a given
mapping.

## Builtins

`run_builtin(argv, env, out, err, status)` runs `echo`, `cd`, `pwd`,
`export`, `unset`, `env` or `exit`, writes to the `out` and `err` streams it
is given, and returns the exit status. It raises `ValueError` for a name that
`is_builtin` does not accept.

- `echo` accepts any number of leading `-n`, `-nn`, … options.
- `cd` with no argument goes to `HOME`; `cd -` goes to `OLDPWD` and prints it;
  `cd ..` goes to the parent directory. On success `OLDPWD` and `PWD` are
  updated. More than one argument gives `cd: too many arguments`.
  `cd .` leaves the directory as it is and returns 1.
- `export` and `unset` report `not a valid identifier` for bad names and go on
  with the remaining arguments, returning 1 if any failed.
- `exit` raises `ShellExit`, whose `status` is the argument modulo 256, 2 for
  a non-numeric argument, or the previous status when there is none. With more
  than one argument it prints an error and returns 1 instead.

## Redirections

`build_clusters(groups, heredoc_lines)` takes one list of tokens per command.
The operators `<`, `>`, `>>` and `<<` and the word after each are removed from
the command's `argv`. Here-documents are read from `heredoc_lines`, one line
at a time up to the delimiter line, all commands drawing from the same stream.
Files are then opened in order: `>` truncates, `>>` appends, both create the
file. A command whose file cannot be opened is kept with its `error` set to a
`RedirectionError`; `build_cluster` raises that error instead. `Cluster` and
`Redirections` are context managers that close their files.

## Running commands

`run_pipeline(clusters, env, status)` runs the commands connected by pipes and
returns the status of the last one. A lone builtin runs in the calling process
and can change `env`, the working directory, or raise `ShellExit`; builtins in
a longer pipeline run on a copy of the state. Other commands are found by
`resolve_command`: names starting with `/` or `.` are checked as paths
(126 for a file that is not executable or a directory, 127 when not found),
otherwise `PATH` is searched. A child killed by a signal gives 128 plus the
signal number (`exit_status`). The clusters' files are closed afterwards.

## Example

```python
import os
import sys

from minishell.environment import Environment
from minishell.builtins import is_builtin, run_builtin
from minishell.lexer import build_clusters
from minishell.executor import run_pipeline

env = Environment.from_environ(os.environ)
status = 0

argv = ["export", "GREETING=hello"]
if is_builtin(argv[0]):
    status = run_builtin(argv, env, sys.stdout, sys.stderr, status)

groups = [["ls", "-l"], ["grep", "py", ">", "listing.txt"]]
clusters = build_clusters(groups, [])
status = run_pipeline(clusters, env, status)
```

## What it does not do

There is no interactive prompt or command to start: the package does not read
lines from a terminal, keep history or handle Ctrl-C. It also does not turn a
line of text into token groups: quote removal, `$VAR` and `~` expansion,
splitting on `|` and syntax checking are left to the caller, who passes
ready-made word lists to `build_clusters`.

## Tests

The test suite uses pytest and is installed with the `test` extra.