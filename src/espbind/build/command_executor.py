"""Command Executor.

This module runs external tools (the PlatformIO installer, PlatformIO itself
and bindgen) as blocking subprocesses.

Design:
    - No timeout: a hung tool blocks the pipeline until it exits
    - Output is captured and surfaced verbatim on failure
    - On KeyboardInterrupt the whole child process tree is terminated
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

import psutil


class BuildError(Exception):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, cmd: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        message = f"Command failed with exit status {returncode}: {' '.join(self.cmd)}"
        if stdout:
            message += f"\nstdout: {stdout}"
        if stderr:
            message += f"\nstderr: {stderr}"
        super().__init__(message)


@dataclass
class CommandResult:
    """Output of a successful command."""

    cmd: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


class CommandExecutor:
    """Executes external commands.

    This is the only place that spawns processes; stages receive an executor
    so tests can substitute a mock.
    """

    def __init__(self, show_progress: bool = False):
        """Initialize command executor.

        Args:
            show_progress: Echo commands and their output
        """
        self.show_progress = show_progress

    def run(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            env: Variables added on top of the current environment
            cwd: Working directory

        Returns:
            CommandResult with captured output

        Raises:
            BuildError: If the command exits with a non-zero status
            FileNotFoundError: If the executable doesn't exist
        """
        cmd = [str(part) for part in cmd]
        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)

        if self.show_progress:
            print(f"Running: {' '.join(cmd)}")
        logging.debug(f"Running {cmd} (cwd={cwd})")

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=full_env,
            cwd=str(cwd) if cwd else None,
        )

        try:
            stdout, stderr = process.communicate()
        except KeyboardInterrupt:
            terminate_process_tree(process.pid)
            raise

        if self.show_progress and stdout:
            print(stdout)

        if process.returncode != 0:
            raise BuildError(cmd, process.returncode, stdout, stderr)

        return CommandResult(cmd, process.returncode, stdout, stderr)


def terminate_process_tree(root_pid: int) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before parents; stragglers are killed.

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(root_pid)
        processes = root.children(recursive=True)
        processes.reverse()
        processes.append(root)
    except psutil.NoSuchProcess:
        return 0

    signalled = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
        except psutil.NoSuchProcess:
            pass  # Already dead

    _gone, alive = psutil.wait_procs(signalled, timeout=3)
    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass

    return len(signalled)
