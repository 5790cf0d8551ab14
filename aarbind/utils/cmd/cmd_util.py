#
# Copyright 2024 aarbind Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

import os
import shlex
import subprocess
import sys
from dataclasses import dataclass

try:
    from aarbind.utils.context.mode import ExecutionMode
    from aarbind.utils.errors import CommandError
except ImportError:
    from utils.context.mode import ExecutionMode
    from utils.errors import CommandError


@dataclass
class CommandResult:
    returncode: int
    output: str = ""

    def is_success(self):
        return self.returncode == 0


def decode_bytes(input: bytes) -> str:
    """Decode command output, falling back to GBK for Chinese Windows consoles."""
    try:
        return bytes.decode(input, "UTF-8")
    except UnicodeDecodeError:
        return bytes.decode(input, "GBK", errors="replace")


def format_command(command) -> str:
    return " ".join(shlex.quote(str(x)) for x in command)


def exec_command(command, cwd=None, env=None, stdout=subprocess.PIPE, stderr=subprocess.STDOUT):
    """
    Run a command without a shell and wait for it.

    Args:
        command: Argument list, command[0] is the executable
        cwd: Working directory of the child process
        env: Extra environment variables layered over os.environ

    Returns:
        tuple: (exit_code, output) with stdout/stderr combined

    Raises:
        OSError: If the executable cannot be started
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)
    popen = subprocess.Popen(
        command,
        cwd=cwd,
        env=full_env,
        stdout=stdout,
        stderr=stderr,
    )
    out, _ = popen.communicate()
    err_msg = decode_bytes(out) if out else ""
    return popen.returncode, err_msg


def run_cmd(command, cwd=None, env=None, mode=ExecutionMode.REAL, verbose=False) -> CommandResult:
    """
    Run an external command, failing on a non-zero exit.

    In plan mode or verbose mode the working directory and the command line
    are echoed to stderr first. In plan mode nothing is executed.

    Raises:
        CommandError: If the command cannot be started or exits non-zero
    """
    if mode.is_plan or verbose:
        if cwd:
            print(f"cd {cwd}", file=sys.stderr)
        env_prefix = " ".join(f"{k}={shlex.quote(v)}" for k, v in (env or {}).items())
        line = format_command(command)
        print(f"{env_prefix} {line}" if env_prefix else line, file=sys.stderr)
    if mode.is_plan:
        return CommandResult(0)

    try:
        err_code, err_msg = exec_command(command, cwd=cwd, env=env)
    except OSError as e:
        raise CommandError(command, None, str(e)) from e
    if err_code != 0:
        raise CommandError(command, err_code, err_msg.strip())
    if verbose and err_msg:
        print(err_msg, file=sys.stderr, end="" if err_msg.endswith("\n") else "\n")
    return CommandResult(err_code, err_msg)
