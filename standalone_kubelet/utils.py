# /*
# Copyright 2026 The Standalone Kubelet Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Host command execution, process lookup, and small filesystem checks."""

from __future__ import annotations

import os
import platform
import shlex
import stat
import subprocess
from pathlib import Path

import sh

from standalone_kubelet import logger
from standalone_kubelet.constants import ARCH_ALIASES


def host_arch() -> str:
    """Map the running machine's architecture to a release archive suffix.

    Returns:
        Architecture suffix such as ``amd64`` or ``arm64``.
    """
    machine = platform.machine().lower()
    return ARCH_ALIASES.get(machine, machine)


def is_executable_file(path: Path) -> bool:
    """Check that *path* is a regular file the caller may execute."""
    return path.is_file() and os.access(path, os.X_OK)


def socket_exists(path: Path) -> bool:
    """Check that *path* exists and is a unix domain socket."""
    try:
        return stat.S_ISSOCK(path.stat().st_mode)
    except OSError:
        return False


def dir_is_empty(path: Path) -> bool:
    """Return True when *path* is missing, not a directory, or has no entries."""
    if not path.is_dir():
        return True
    return not any(path.iterdir())


class HostShell:
    """Runs host commands through ``sh``, elevating with sudo when configured.

    Every bootstrap stage talks to the host only through this class so the
    stages can be exercised against a fake in tests.

    Args:
        use_sudo: Whether privileged commands are prefixed with ``sudo``.
    """

    def __init__(self, use_sudo: bool = True) -> None:
        self.use_sudo = use_sudo

    def _argv(self, args: tuple[str, ...], privileged: bool) -> list[str]:
        if privileged and self.use_sudo:
            return ["sudo", *args]
        return list(args)

    def run(self, *args: str, privileged: bool = True, stdin: str | None = None) -> str:
        """Run a command and return its stdout.

        Args:
            *args: Command name followed by its arguments.
            privileged: Whether the command needs sudo elevation.
            stdin: Text to feed on standard input, or None.

        Returns:
            Captured standard output.

        Raises:
            sh.ErrorReturnCode: If the command exits non-zero.
        """
        argv = self._argv(args, privileged)
        logger.debug("$ %s", shlex.join(argv))
        kwargs = {}
        if stdin is not None:
            kwargs["_in"] = stdin
        return str(sh.Command(argv[0])(*argv[1:], **kwargs))

    def which(self, cmd: str) -> bool:
        """Check if a command exists on the system PATH."""
        try:
            sh.which(cmd)
        except (sh.ErrorReturnCode, sh.CommandNotFound):
            return False
        return True

    def is_active(self, unit: str) -> bool:
        """Check whether a systemd unit is active."""
        try:
            self.run("systemctl", "is-active", "--quiet", unit, privileged=False)
        except sh.ErrorReturnCode:
            return False
        return True

    def make_dirs(self, path: Path) -> None:
        """Create *path* and its parents if missing."""
        if self.use_sudo:
            self.run("mkdir", "-p", str(path))
        else:
            path.mkdir(parents=True, exist_ok=True)

    def write_file(self, path: Path, content: str) -> None:
        """Create the parent directory of *path* and write *content* to it."""
        self.make_dirs(path.parent)
        if self.use_sudo:
            self.run("tee", str(path), stdin=content)
        else:
            path.write_text(content)

    def remove_file(self, path: Path) -> None:
        if self.use_sudo:
            self.run("rm", "-f", str(path))
        else:
            path.unlink(missing_ok=True)

    def download_and_extract(self, url: str, dest: Path) -> None:
        """Stream a gzipped tarball from *url* and unpack it into *dest*.

        Raises:
            sh.ErrorReturnCode: If the download or the extraction fails.
        """
        pipeline = f"curl -fsSL {shlex.quote(url)} | tar -C {shlex.quote(str(dest))} -xz"
        self.run("bash", "-o", "pipefail", "-c", pipeline)

    def find_pids(self, name: str) -> list[int]:
        """Return pids whose process name is exactly *name*, excluding our own."""
        try:
            output = self.run("pgrep", "-x", name, privileged=False)
        except sh.ErrorReturnCode_1:
            return []
        own = os.getpid()
        return [int(pid) for pid in output.split() if int(pid) != own]

    def find_child_pids(self, parent: int, name: str) -> list[int]:
        """Return pids of children of *parent* whose process name is exactly *name*."""
        try:
            output = self.run("pgrep", "-P", str(parent), "-x", name, privileged=False)
        except sh.ErrorReturnCode_1:
            return []
        return [int(pid) for pid in output.split()]

    def pid_alive(self, pid: int) -> bool:
        return Path(f"/proc/{pid}").exists()

    def signal(self, pid: int, signame: str = "TERM") -> None:
        """Send a signal to *pid*."""
        self.run("kill", f"-{signame}", str(pid))

    def spawn(self, args: list[str], log_file: Path | None = None) -> subprocess.Popen:
        """Start a detached, privileged process and return without waiting.

        Uses subprocess instead of sh because the child has to outlive this
        process in its own session, which sh's background commands (tied to
        reader threads for the child's pipes) do not support.

        With sudo, the log file is opened by an elevated shell that then
        execs the command, so root-owned log locations work and the child
        of ``sudo`` is still the command itself.

        Args:
            args: Command name followed by its arguments.
            log_file: File to append the child's output to, or None to
                inherit our stdout/stderr.

        Returns:
            The Popen handle of the spawned child.
        """
        if log_file is None:
            argv = self._argv(tuple(args), privileged=True)
            logger.debug("$ %s &", shlex.join(argv))
            return subprocess.Popen(argv, stdin=subprocess.DEVNULL, start_new_session=True)

        self.make_dirs(log_file.parent)
        if self.use_sudo:
            redirect = f'exec "$@" >>{shlex.quote(str(log_file))} 2>&1'
            argv = self._argv(("bash", "-c", redirect, "bash", *args), privileged=True)
            logger.debug("$ %s &", shlex.join(argv))
            return subprocess.Popen(argv, stdin=subprocess.DEVNULL, start_new_session=True)

        argv = list(args)
        logger.debug("$ %s >>%s &", shlex.join(argv), log_file)
        with open(log_file, "ab") as out:
            return subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
