"""
Shared pytest fixtures for standalone-kubelet tests.

This module provides:
- FakeShell: a HostShell that records commands, writes files for real under
  a temporary host root, and simulates packages, services, sockets and pids
- FakePopen: stand-in for the detached kubelet process
- Fixtures wiring a BootstrapConfig to the temporary host root
"""

from __future__ import annotations

import shutil
import socket
import stat
import tempfile
from pathlib import Path

import pytest
import sh

from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.utils import HostShell

DEFAULT_CONTAINERD_TOML = """version = 2
[plugins."io.containerd.grpc.v1.cri".containerd.runtimes.runc.options]
  SystemdCgroup = false
"""

KUBELET_PID = 4242


def make_socket(path: Path) -> None:
    """Create a unix domain socket file at *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(str(path))
    finally:
        sock.close()


class FakePopen:
    """Minimal subprocess.Popen stand-in."""

    def __init__(self, pid: int, returncode: int | None = None) -> None:
        self.pid = pid
        self.returncode = returncode

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int:
        if self.returncode is None:
            self.returncode = -15
        return self.returncode


class FakeShell(HostShell):
    """HostShell double for a simulated Debian host.

    Attributes:
        calls: Every command passed to ``run`` (as argument tuples).
        downloads: ``(url, dest)`` pairs passed to ``download_and_extract``.
        signals: ``(pid, signame)`` pairs passed to ``signal``.
        spawned: Argument lists passed to ``spawn``.
        installed: Command names resolvable on PATH.
        active: Active systemd units.
        pids: Process name -> running pids.
        children: Parent pid -> child pids, for processes launched through a wrapper.
        socket_path: Socket created whenever containerd is (re)started, or None.
        kubelet_starts: Whether a spawned kubelet shows up in the process table.
        spawn_returncode: Exit code of the spawned process, or None if it keeps running.
        fail_downloads: Whether ``download_and_extract`` fails.
    """

    def __init__(self, socket_path: Path | None = None) -> None:
        super().__init__(use_sudo=False)
        self.calls: list[tuple[str, ...]] = []
        self.downloads: list[tuple[str, Path]] = []
        self.signals: list[tuple[int, str]] = []
        self.spawned: list[list[str]] = []
        self.installed: set[str] = set()
        self.active: set[str] = set()
        self.pids: dict[str, list[int]] = {}
        self.children: dict[int, list[int]] = {}
        self.socket_path = socket_path
        self.kubelet_starts = True
        self.spawn_returncode: int | None = None
        self.fail_downloads = False

    def run(self, *args: str, privileged: bool = True, stdin: str | None = None) -> str:
        self.calls.append(args)
        if args[:2] == ("apt", "install"):
            self.installed.add("containerd")
        if args[:3] == ("containerd", "config", "default"):
            return DEFAULT_CONTAINERD_TOML
        if args[:2] == ("systemctl", "restart"):
            self.active.add(args[2])
            if self.socket_path is not None and not self.socket_path.exists():
                make_socket(self.socket_path)
        return ""

    def which(self, cmd: str) -> bool:
        return cmd in self.installed

    def is_active(self, unit: str) -> bool:
        return unit in self.active

    def download_and_extract(self, url: str, dest: Path) -> None:
        self.downloads.append((url, dest))
        if self.fail_downloads:
            raise sh.ErrorReturnCode_1(f"curl -fsSL {url}", b"", b"curl: (22) 404")
        for plugin in ("bridge", "host-local", "loopback"):
            (dest / plugin).write_text("#!/bin/true\n")

    def find_pids(self, name: str) -> list[int]:
        return list(self.pids.get(name, []))

    def find_child_pids(self, parent: int, name: str) -> list[int]:
        return [pid for pid in self.children.get(parent, []) if pid in self.pids.get(name, [])]

    def pid_alive(self, pid: int) -> bool:
        return any(pid in pids for pids in self.pids.values())

    def signal(self, pid: int, signame: str = "TERM") -> None:
        self.signals.append((pid, signame))
        for pids in self.pids.values():
            if pid in pids:
                pids.remove(pid)

    def spawn(self, args: list[str], log_file: Path | None = None) -> FakePopen:
        self.spawned.append(list(args))
        if self.kubelet_starts and self.spawn_returncode is None:
            self.pids.setdefault(Path(args[0]).name, []).append(KUBELET_PID)
        return FakePopen(KUBELET_PID, self.spawn_returncode)

    def commands(self, *prefix: str) -> list[tuple[str, ...]]:
        """Recorded calls starting with *prefix*."""
        return [call for call in self.calls if call[: len(prefix)] == prefix]


@pytest.fixture
def host_root():
    """Short-lived fake filesystem root (short path: unix sockets cap at ~108 chars)."""
    root = Path(tempfile.mkdtemp(prefix="sk-"))
    yield root
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture
def cfg(host_root: Path) -> BootstrapConfig:
    return BootstrapConfig(
        kubelet_config=host_root / "var/lib/kubelet/config.yaml",
        containerd_socket=host_root / "run/containerd/containerd.sock",
        containerd_config=host_root / "etc/containerd/config.toml",
        pod_manifest_dir=host_root / "etc/kubernetes/manifests",
        cni_bin_dir=host_root / "opt/cni/bin",
        cni_conf_dir=host_root / "etc/cni/net.d",
        cni_arch="amd64",
        pid_file=host_root / "run/standalone-kubelet.pid",
        healthz_url=None,
        startup_grace_seconds=0,
        startup_timeout_seconds=0.3,
        poll_min_seconds=0,
        poll_max_seconds=0.02,
        use_sudo=False,
    )


@pytest.fixture
def shell(cfg: BootstrapConfig) -> FakeShell:
    return FakeShell(socket_path=cfg.containerd_socket)


@pytest.fixture
def kubelet_binary(host_root: Path) -> Path:
    binary = host_root / "usr/local/bin/kubelet"
    binary.parent.mkdir(parents=True)
    binary.write_text("#!/bin/sh\nexit 0\n")
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return binary
