# lshell

`lshell` is a small interactive command shell for POSIX systems. It reads a
line, splits it into commands separated by `|`, expands variables and
removes quotes, and runs the pipeline. It supports:

- pipelines: `ls -l | grep py | wc -l`
- redirections: `< file`, `> file`, `>> file`
- here-documents: `cat << EOF`
- variable expansion: `$NAME` and `$?` (exit status of the last command)
- single quotes (no expansion inside) and double quotes (variables expanded)
- built-in commands: `echo` (with `-n`), `cd` (including `cd -`, `cd --`
  and a leading `~`), `pwd`, `env`, `export`, `unset`, `exit`

Other commands are looked up on `PATH` and started as child processes with
`fork` and `execve`; names containing `/` are run as given.

## Installation

```
pip install .
```

## Usage

Start the shell with no arguments:

```
lshell
```

The prompt is `😊lsh$ `. Type commands as in a POSIX shell:

```
😊lsh$ export GREETING=hello
😊lsh$ echo "$GREETING world" | tr a-z A-Z
HELLO WORLD
😊lsh$ cat << END > notes.txt
> first line
> END
😊lsh$ exit 0
```

Behaviour worth knowing:

- Ctrl-C at the prompt starts a fresh prompt and sets the status to 1.
  Ctrl-C while a here-document is being read abandons the whole line,
  removes any here-document files already written and sets the status to 1.
  Ctrl-\ is ignored.
- Ctrl-D at the prompt leaves the shell with status 0.
- `exit N` leaves with `N` modulo 256; a non-numeric argument prints
  `numeric argument required` and leaves with 255; more than one numeric
  argument prints `too many arguments` and leaves with 1.
- A malformed line (an empty pipeline stage, or a redirection with no
  target) prints `syntax error` and sets the status to 258.
- A variable in a redirection target that expands to several words is
  reported as an `ambiguous redirect`.
- Variables in a here-document delimiter are not expanded; variables in the
  here-document's lines always are. The text is kept in a temporary
  `.heredoc_N` file in the current directory, deleted after the line runs.
- A builtin runs inside the shell only when it is the sole command on the
  line and has no redirections. Otherwise it runs in a child process, so
  `cd`, `export`, `unset` and `exit` there do not affect the shell.
- `export` with no arguments lists all variables, grouped by first
  character, with values in double quotes.

The shell takes no command-line arguments; given any, it prints an error and
exits with status 1.

## What it does not do

This is a deliberately small shell. It has no `;`, `&&` or `||`, no
background jobs or job control, no subshells or command substitution, no
filename globbing, no backslash escapes, no `2>` or other descriptor
redirections, and no script files or startup files: it only reads commands
interactively, one line at a time.

## Using it from Python

The pieces of the shell can be used on their own:

- `lshell.tokenizer.tokenize(line)` splits a line into `Command` objects
  (`redirections` such as `"< file"` and `words`, per pipeline stage) and
  raises `ShellSyntaxError` on malformed input.
- `lshell.environment.Environment` holds the shell's variables as an ordered
  list of `NAME=value` entries (`get`, `add`, `delete`, `replace`,
  `exported`); `Environment.from_envp(os.environ)` builds the shell's start-up
  environment. `ShellState` holds the environment, the last exit status and
  the Ctrl-C count.
- `lshell.expansion.shell_expand(commands, env, status)` returns the commands
  with variables expanded and quotes removed; `expand_word` expands variables
  in a single string.
- `lshell.builtins.run_builtin(argv, state, out, err)` runs a builtin,
  writing to the given streams; `exit` raises `ShellExit`.
- `lshell.heredoc.collect_heredocs(commands, env, status, read_line,
  directory)` writes here-documents to files, and `remove_heredocs(commands)`
  deletes them.
- `lshell.executor.execute(commands, state, read_line)` collects
  here-documents and runs a tokenized, expanded pipeline;
  `resolve_command(name, env)` looks a name up on `PATH`.
- `lshell.cli.run_line(line, state, read_line)` does all of the above for one
  input line and returns the exit status.

`read_line` is any callable that takes a prompt and returns a line, or
`None` at end of input; by default `input()` is used.

## Running the tests

```
pip install .[test]
pytest
```