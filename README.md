# minishell

A small interactive command shell for POSIX systems. It reads command lines,
expands variables, and runs builtins or external programs, alone or joined
in pipelines.

## Installing

    pip install .

For the test suite:

    pip install .[test]
    pytest

## Running

    minishell

or, equivalently, `python -m minishell.shell`.

The prompt is `minishell> `. Press Ctrl+D on an empty line to leave; the
shell prints `exit` and returns. Blank lines are ignored. Ctrl+C at the
prompt starts a fresh line; Ctrl+\ is ignored. While an external program
runs, the shell itself ignores Ctrl+C and the program receives it. Lines
you enter are added to the readline history when the `readline` module is
available.

## What it understands

- Words, with `'single'` quotes taken literally and `"double"` quotes that
  still expand `$NAME`. An unclosed quote is reported as
  `syntax error: unclosed quotes` and the line is dropped.
- `$NAME` expansion from the shell's environment; unknown names expand to
  nothing. Unquoted expansions that contain whitespace are split into
  several words. `$$` is dropped.
- Pipes: `cmd1 | cmd2 | cmd3`, each command running in a child process of
  its own. A leading pipe, a trailing pipe or `||` is reported as
  ``syntax error near unexpected token `|'``.
- Redirections: `< file`, `> file`, `>> file`, and here-documents
  `<< DELIM`, read at the `>` prompt. A quoted delimiter (`<< 'EOF'`) turns
  off variable expansion inside the here-document body. Here-document text
  is kept in a temporary file that is removed once the line has run. A
  redirection with no file name is a syntax error; a file that cannot be
  opened is reported and the command still runs.
- Builtins:
  - `cd [DIR | - | --]` — no argument or `--` goes to `$HOME`, `-` goes to
    `$OLDPWD` and prints it; `OLDPWD` and `PWD` are refreshed when they are
    already defined.
  - `echo [-n] WORDS…` — `-n`, `-nnn` and repeats of them drop the trailing
    newline; a word that is exactly `$?` prints the last exit status.
  - `env` — prints every variable with a non-empty value, newest first.
  - `export [NAME[=VALUE]…]` — defines variables; with no argument, lists
    them all as `declare -x NAME="VALUE"`.
  - `pwd`, `unset NAME…`, and `exit [N]` (exit status `N % 256`; a
    non-numeric argument exits with 255; more than one argument is refused
    with status 1).
- Anything else is looked up through `PATH`, or run directly when given as a
  path such as `./prog` or `/bin/ls`. Unknown commands print
  `Command not found: NAME` and set the exit status to 127. A program
  killed by a signal leaves the status `128 + signal number`.

## What it does not do

There are no command separators (`;`, `&&`, `||`), no background jobs, no
globbing, no subshells or command substitution, and no scripts: the shell
only reads lines interactively or from the reader you give it. `$?` is not
expanded in general; only `echo` recognises a bare `$?` argument.

## Using it from Python

The pieces are plain modules:

- `minishell.environment` — `Environment`, `ShellState`,
  `is_valid_identifier`, `format_export`, `expand_variable`
- `minishell.textutils` — quote scanning and splitting helpers, and
  `ShellSyntaxError`
- `minishell.lexer` — `tokenize`, `Token`, `TokenType`
- `minishell.heredoc` — `read_heredoc`, `expand_heredoc_line`,
  `quoted_delimiter`
- `minishell.parser` — `parse_pipeline`, `Command`, `Redirect`
- `minishell.builtins` — the builtins, `run_builtin`, `is_builtin`,
  `ExitShell`
- `minishell.redirection` — `apply_redirects`, `saved_stdio`
- `minishell.executor` — `execute_command`, `execute_external`,
  `run_pipeline`, `find_in_path`
- `minishell.shell` — `handle_line`, `run`, `main`

```python
from minishell.environment import Environment, ShellState
from minishell.lexer import tokenize
from minishell.parser import parse_pipeline
from minishell.shell import handle_line

env = Environment.from_strings(["HOME=/tmp", "PATH=/usr/bin:/bin"])
commands = parse_pipeline(tokenize('echo "$HOME" | cat', env), env)

state = ShellState(env)
status = handle_line(state, "echo hello")
```

`minishell.shell.run(state, reader)` drives the read–evaluate loop with any
callable that takes a prompt and returns a line, or `None` at end of input;
here-documents are read through the same callable. It returns the code the
shell exits with. `minishell.shell.main` is what the `minishell` command
starts.