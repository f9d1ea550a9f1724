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

"""Kubelet binary validation, config and manifest files, launch and liveness."""

from __future__ import annotations

import subprocess
import time
from pathlib import Path

import requests
from rich.panel import Panel
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from standalone_kubelet import console, logger
from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.constants import (
    HEALTHZ_REQUEST_TIMEOUT_SECONDS,
    PROCESS_NAME_MAX_LEN,
    STOP_TIMEOUT_SECONDS,
)
from standalone_kubelet.errors import (
    AlreadyRunningError,
    LivenessError,
    StartupError,
    ValidationError,
)
from standalone_kubelet.manifests import render_kubelet_config, render_pod_manifest
from standalone_kubelet.utils import HostShell, is_executable_file

STOP_POLL_INTERVAL_SECONDS = 0.5


class KubeletNotReady(Exception):
    """A readiness probe found the kubelet not (yet) ready."""


# ============================================================================
# Binary validation
# ============================================================================

def validate_kubelet_binary(binary: str) -> Path:
    """Check that the supplied kubelet path is an executable file.

    Args:
        binary: Path given on the command line.

    Returns:
        The absolute path of the binary.

    Raises:
        ValidationError: If the path is empty, missing, or not executable.
    """
    if not binary or not binary.strip():
        raise ValidationError(
            "Kubelet binary path not provided! Pass it as an argument, e.g. standalone-kubelet /path/to/kubelet"
        )
    path = Path(binary)
    if not is_executable_file(path):
        raise ValidationError(f"Kubelet binary at {path} is not executable or does not exist!")
    path = path.resolve()
    console.print(f"[green]\u2713 Using kubelet binary: {path}[/green]")
    return path


def process_name(cfg: BootstrapConfig, binary: Path | None = None) -> str:
    """Name the kubelet shows in the process table.

    Args:
        cfg: Bootstrap configuration with an optional explicit name.
        binary: Kubelet binary path, or None when unknown.

    Returns:
        Process name, cut to the kernel's comm length.
    """
    name = cfg.process_name or (binary.name if binary else "kubelet")
    return name[:PROCESS_NAME_MAX_LEN]


# ============================================================================
# Config and manifest files
# ============================================================================

def ensure_kubelet_config(cfg: BootstrapConfig, shell: HostShell) -> bool:
    """Write the kubelet config unless a file already exists.

    Args:
        cfg: Bootstrap configuration with the config path.
        shell: Host command runner.

    Returns:
        True if the file was written, False if it already existed.
    """
    console.print(Panel.fit("Checking kubelet configuration", style="bold blue"))
    if cfg.kubelet_config.is_file():
        console.print(f"[green]\u2713 Kubelet configuration already exists at {cfg.kubelet_config}[/green]")
        return False
    shell.write_file(cfg.kubelet_config, render_kubelet_config(cfg))
    console.print(f"[green]\u2705 Kubelet configuration created at {cfg.kubelet_config}[/green]")
    return True


def generate_pod_manifest(cfg: BootstrapConfig, shell: HostShell) -> Path:
    """(Re)write the static test pod manifest, replacing any previous content.

    Args:
        cfg: Bootstrap configuration with the manifest path.
        shell: Host command runner.

    Returns:
        Path of the written manifest.
    """
    console.print(Panel.fit("Generating pod manifest", style="bold blue"))
    shell.write_file(cfg.pod_manifest_file, render_pod_manifest(cfg))
    console.print(f"[green]\u2705 Pod manifest generated at {cfg.pod_manifest_file}[/green]")
    return cfg.pod_manifest_file


# ============================================================================
# Process handle
# ============================================================================

class KubeletProcess:
    """Handle on a kubelet launched by this tool.

    The process runs in its own session and keeps running after the tool
    exits; the handle only exists to check and, on request, stop it.
    """

    def __init__(self, process: subprocess.Popen, shell: HostShell) -> None:
        self._process = process
        self._shell = shell

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.poll()

    def is_alive(self) -> bool:
        return self._process.poll() is None

    def stop(self, timeout: float = STOP_TIMEOUT_SECONDS) -> None:
        """Terminate the kubelet, escalating to SIGKILL after *timeout* seconds."""
        if not self.is_alive():
            return
        # Signalled through the shell: with sudo the child belongs to root.
        self._shell.signal(self.pid, "TERM")
        try:
            self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Kubelet pid %d ignored SIGTERM; sending SIGKILL", self.pid)
            self._shell.signal(self.pid, "KILL")
            self._process.wait()


def terminate_pids(pids: list[int], shell: HostShell, timeout: float = STOP_TIMEOUT_SECONDS) -> None:
    """Stop processes we did not spawn, escalating to SIGKILL after *timeout*.

    Args:
        pids: Process ids to stop.
        shell: Host command runner.
        timeout: Seconds to wait for a clean exit.
    """
    for pid in pids:
        shell.signal(pid, "TERM")

    @retry(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(STOP_POLL_INTERVAL_SECONDS),
        retry=retry_if_result(bool),
    )
    def _survivors() -> list[int]:
        return [pid for pid in pids if shell.pid_alive(pid)]

    try:
        _survivors()
    except RetryError as err:
        for pid in err.last_attempt.result():
            logger.warning("pid %d ignored SIGTERM; sending SIGKILL", pid)
            shell.signal(pid, "KILL")


# ============================================================================
# Launch and readiness
# ============================================================================

def kubelet_args(binary: Path, cfg: BootstrapConfig) -> list[str]:
    """Build the kubelet command line for standalone mode."""
    return [
        str(binary),
        f"--config={cfg.kubelet_config}",
        f"--container-runtime-endpoint={cfg.runtime_endpoint}",
        f"--pod-manifest-path={cfg.pod_manifest_dir}",
        "--fail-swap-on=false",
        f"--v={cfg.kubelet_verbosity}",
    ]


def ensure_single_instance(name: str, shell: HostShell, replace: bool = False) -> None:
    """Refuse to launch next to a running kubelet unless asked to replace it.

    Args:
        name: Kubelet process name.
        shell: Host command runner.
        replace: Whether to stop running kubelets instead of failing.

    Raises:
        AlreadyRunningError: If a kubelet runs and *replace* is False.
    """
    pids = shell.find_pids(name)
    if not pids:
        return
    if not replace:
        raise AlreadyRunningError(pids)
    console.print(f"[yellow]\u26a0\ufe0f  Stopping running kubelet (pid {', '.join(map(str, pids))})...[/yellow]")
    terminate_pids(pids, shell)


def launch_kubelet(binary: Path, cfg: BootstrapConfig, shell: HostShell) -> KubeletProcess:
    """Spawn the kubelet detached and record its pid.

    Args:
        binary: Validated kubelet binary.
        cfg: Bootstrap configuration with paths and flags.
        shell: Host command runner.

    Returns:
        Handle on the spawned kubelet.
    """
    console.print(Panel.fit("Starting kubelet", style="bold blue"))
    console.print(f"[yellow]\u2139\ufe0f  Static pods from {cfg.pod_manifest_dir}[/yellow]")
    handle = KubeletProcess(shell.spawn(kubelet_args(binary, cfg), cfg.kubelet_log_file), shell)
    shell.write_file(cfg.pid_file, f"{handle.pid}\n")
    logger.info("Kubelet spawned with pid %d", handle.pid)
    return handle


def healthz_ok(url: str) -> bool:
    """Return True when the kubelet health endpoint answers ``ok``."""
    try:
        resp = requests.get(url, timeout=HEALTHZ_REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        logger.debug("healthz probe failed: %s", exc)
        return False
    return resp.status_code == 200 and resp.text.strip() == "ok"


def wait_for_kubelet(handle: KubeletProcess, name: str, cfg: BootstrapConfig, shell: HostShell) -> None:
    """Wait for the launched kubelet to become ready.

    Sleeps for the grace period, then probes with exponential backoff until
    the process is in the process table and, when configured, its health
    endpoint answers.

    Args:
        handle: Handle on the launched kubelet.
        name: Kubelet process name.
        cfg: Bootstrap configuration with timing and health settings.
        shell: Host command runner.

    Raises:
        StartupError: If the kubelet exits or is not ready before the timeout.
    """
    console.print(f"[yellow]\u2139\ufe0f  Waiting up to {cfg.startup_timeout_seconds:g}s for kubelet to become ready...[/yellow]")
    if cfg.startup_grace_seconds:
        time.sleep(cfg.startup_grace_seconds)

    @retry(
        stop=stop_after_delay(cfg.startup_timeout_seconds),
        wait=wait_exponential(multiplier=1, min=cfg.poll_min_seconds, max=cfg.poll_max_seconds),
        retry=retry_if_exception_type(KubeletNotReady),
        reraise=True,
    )
    def _probe() -> None:
        if not handle.is_alive():
            raise StartupError(
                f"Kubelet exited with code {handle.returncode}! Check the configuration and logs for details."
            )
        if not shell.find_pids(name):
            raise KubeletNotReady(f"no '{name}' process found")
        if cfg.healthz_url and not healthz_ok(cfg.healthz_url):
            raise KubeletNotReady(f"{cfg.healthz_url} is not healthy")

    try:
        _probe()
    except KubeletNotReady as err:
        raise StartupError(
            f"Kubelet failed to start within {cfg.startup_timeout_seconds:g}s: {err}"
        ) from err
    console.print(f"[green]\u2705 Kubelet started with --pod-manifest-path={cfg.pod_manifest_dir}[/green]")


def start_kubelet(
    binary: Path,
    cfg: BootstrapConfig,
    shell: HostShell,
    replace: bool = False,
) -> KubeletProcess:
    """Guard against a second instance, launch the kubelet, and wait for it.

    Raises:
        AlreadyRunningError: If a kubelet runs and *replace* is False.
        StartupError: If the kubelet does not become ready.
    """
    name = process_name(cfg, binary)
    ensure_single_instance(name, shell, replace=replace)
    handle = launch_kubelet(binary, cfg, shell)
    wait_for_kubelet(handle, name, cfg, shell)
    return handle


# ============================================================================
# Status
# ============================================================================

def report_kubelet_process(name: str, shell: HostShell) -> bool:
    """Log whether a kubelet is running; never fails.

    Returns:
        True if a kubelet process was found.
    """
    console.print("[yellow]\u2139\ufe0f  Checking if kubelet process is running...[/yellow]")
    pids = shell.find_pids(name)
    if pids:
        console.print(f"[green]\u2713 Kubelet process is running (pid {', '.join(map(str, pids))})[/green]")
        return True
    console.print("[yellow]\u26a0\ufe0f  Kubelet process is not running; continuing with setup[/yellow]")
    return False


def check_kubelet_status(name: str, shell: HostShell) -> list[int]:
    """Confirm that a kubelet is running.

    Returns:
        Pids of the running kubelet processes.

    Raises:
        LivenessError: If no kubelet process is found.
    """
    console.print("[yellow]\u2139\ufe0f  Checking if kubelet is running...[/yellow]")
    pids = shell.find_pids(name)
    if not pids:
        raise LivenessError("Kubelet is not running!")
    console.print(f"[green]\u2705 Kubelet is running (pid {', '.join(map(str, pids))})[/green]")
    return pids


def read_pid_file(path: Path) -> int | None:
    """Return the pid recorded in *path*, or None if it is missing or garbled."""
    try:
        return int(path.read_text().strip())
    except (OSError, ValueError):
        return None


def recorded_kubelet_pids(cfg: BootstrapConfig, shell: HostShell) -> list[int]:
    """Return the kubelet pids behind the pid file, discarding a stale file.

    The recorded pid counts only while it is still a kubelet, or, when the
    kubelet was launched through sudo, while it has a kubelet child. A pid
    that died or was reused by another program leaves the file stale.

    Args:
        cfg: Bootstrap configuration with the pid file path.
        shell: Host command runner.

    Returns:
        Kubelet pids to signal, or an empty list.
    """
    pid = read_pid_file(cfg.pid_file)
    if pid is None:
        return []
    name = process_name(cfg)
    if shell.pid_alive(pid):
        if pid in shell.find_pids(name):
            return [pid]
        children = shell.find_child_pids(pid, name)
        if children:
            return children
    logger.warning("Pid file %s names pid %d, which is not a running kubelet; removing it", cfg.pid_file, pid)
    shell.remove_file(cfg.pid_file)
    return []


def stop_kubelet(cfg: BootstrapConfig, shell: HostShell, all_processes: bool = False) -> list[int]:
    """Stop the kubelet recorded in the pid file, or every kubelet process.

    Args:
        cfg: Bootstrap configuration with the pid file path.
        shell: Host command runner.
        all_processes: Whether to stop every process matching the kubelet name.

    Returns:
        Pids that were signalled.

    Raises:
        LivenessError: If there is nothing to stop.
    """
    if all_processes:
        pids = shell.find_pids(process_name(cfg))
    else:
        pids = recorded_kubelet_pids(cfg, shell)
    if not pids:
        raise LivenessError("No running kubelet to stop")

    terminate_pids(pids, shell)
    shell.remove_file(cfg.pid_file)
    console.print(f"[green]\u2705 Stopped kubelet (pid {', '.join(map(str, pids))})[/green]")
    return pids
