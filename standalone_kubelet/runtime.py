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

"""containerd installation, default configuration, and service checks."""

from __future__ import annotations

from rich.panel import Panel

from standalone_kubelet import console
from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.constants import (
    CONTAINERD_BINARY,
    SYSTEMD_CGROUP_DISABLED,
    SYSTEMD_CGROUP_ENABLED,
)
from standalone_kubelet.errors import DependencyError
from standalone_kubelet.utils import HostShell, socket_exists


def default_containerd_config(cfg: BootstrapConfig, shell: HostShell) -> str:
    """Ask containerd for its default config, matching the kubelet cgroup driver.

    Args:
        cfg: Bootstrap configuration with the cgroup settings.
        shell: Host command runner.

    Returns:
        containerd config.toml content.
    """
    content = shell.run(CONTAINERD_BINARY, "config", "default", privileged=False)
    if cfg.systemd_cgroup and cfg.cgroup_driver == "systemd":
        content = content.replace(SYSTEMD_CGROUP_DISABLED, SYSTEMD_CGROUP_ENABLED)
    return content


def restart_containerd(cfg: BootstrapConfig, shell: HostShell) -> None:
    shell.run("systemctl", "restart", cfg.containerd_service)


def install_containerd(cfg: BootstrapConfig, shell: HostShell) -> None:
    """Install the containerd package, persist its default config, and restart it.

    Args:
        cfg: Bootstrap configuration with package, config path and service name.
        shell: Host command runner.

    Raises:
        sh.ErrorReturnCode: If apt, containerd or systemctl fails.
    """
    console.print(f"[yellow]\u2139\ufe0f  Installing {cfg.containerd_package}...[/yellow]")
    shell.run("apt", "update")
    shell.run("apt", "install", "-y", cfg.containerd_package)
    shell.write_file(cfg.containerd_config, default_containerd_config(cfg, shell))
    restart_containerd(cfg, shell)
    console.print("[green]\u2705 containerd installed and configured[/green]")


def ensure_containerd(cfg: BootstrapConfig, shell: HostShell) -> None:
    """Make sure containerd is installed, running, and serving its socket.

    Installs only when the binary is missing; the service check runs on
    every call so an installed-but-stopped runtime is restarted too.

    Args:
        cfg: Bootstrap configuration with the runtime paths.
        shell: Host command runner.

    Raises:
        DependencyError: If the control socket is missing afterwards.
    """
    console.print(Panel.fit("Checking containerd", style="bold blue"))
    if not shell.which(CONTAINERD_BINARY):
        install_containerd(cfg, shell)
    else:
        console.print("[green]\u2713 containerd is already installed[/green]")

    if not shell.is_active(cfg.containerd_service):
        console.print(f"[yellow]\u2139\ufe0f  Starting {cfg.containerd_service} service...[/yellow]")
        restart_containerd(cfg, shell)

    if not socket_exists(cfg.containerd_socket):
        raise DependencyError(f"containerd socket not found at {cfg.containerd_socket}")
    console.print(f"[green]\u2705 containerd is serving {cfg.containerd_socket}[/green]")
