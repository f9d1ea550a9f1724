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

"""CNI plugin binaries and bridge network configuration."""

from __future__ import annotations

from rich.panel import Panel

from standalone_kubelet import console
from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.manifests import render_cni_config
from standalone_kubelet.runtime import restart_containerd
from standalone_kubelet.utils import HostShell, dir_is_empty


def install_cni_plugins(cfg: BootstrapConfig, shell: HostShell) -> None:
    """Download the pinned CNI plugins release into the bin directory.

    Args:
        cfg: Bootstrap configuration with version, arch and bin directory.
        shell: Host command runner.

    Raises:
        sh.ErrorReturnCode: If the download or extraction fails.
    """
    console.print(f"[yellow]\u2139\ufe0f  Installing CNI plugins {cfg.cni_version} ({cfg.cni_arch})...[/yellow]")
    shell.make_dirs(cfg.cni_bin_dir)
    shell.download_and_extract(cfg.cni_archive_url, cfg.cni_bin_dir)
    console.print(f"[green]\u2705 CNI plugins installed to {cfg.cni_bin_dir}[/green]")


def write_cni_config(cfg: BootstrapConfig, shell: HostShell) -> None:
    shell.write_file(cfg.cni_conf_file, render_cni_config(cfg))
    console.print(f"[green]\u2705 CNI network configuration created at {cfg.cni_conf_file}[/green]")


def ensure_cni(cfg: BootstrapConfig, shell: HostShell) -> None:
    """Make sure plugin binaries and the bridge config exist, then restart containerd.

    containerd is restarted even when nothing changed.

    Args:
        cfg: Bootstrap configuration with the CNI paths.
        shell: Host command runner.
    """
    console.print(Panel.fit("Checking CNI plugins", style="bold blue"))
    if dir_is_empty(cfg.cni_bin_dir):
        install_cni_plugins(cfg, shell)
    else:
        console.print("[green]\u2713 CNI plugins are already installed[/green]")

    if not cfg.cni_conf_file.is_file():
        write_cni_config(cfg, shell)
    else:
        console.print(f"[green]\u2713 CNI configuration already exists at {cfg.cni_conf_file}[/green]")

    restart_containerd(cfg, shell)
