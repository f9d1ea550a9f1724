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

"""Orchestration function that composes the stages into the standalone workflow."""

from __future__ import annotations

from standalone_kubelet import console
from standalone_kubelet.cni import ensure_cni
from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.kubelet import (
    KubeletProcess,
    check_kubelet_status,
    ensure_kubelet_config,
    generate_pod_manifest,
    process_name,
    report_kubelet_process,
    start_kubelet,
    validate_kubelet_binary,
)
from standalone_kubelet.runtime import ensure_containerd
from standalone_kubelet.utils import HostShell


def run_standalone_setup(
    binary: str,
    cfg: BootstrapConfig | None = None,
    shell: HostShell | None = None,
    *,
    replace: bool = False,
) -> KubeletProcess:
    """Bootstrap containerd, CNI and a standalone kubelet running the test pod.

    Stages run once, in order; the first failure aborts the run and nothing
    already done is rolled back.

    Args:
        binary: Kubelet binary path from the command line.
        cfg: Bootstrap configuration, or None for env/defaults.
        shell: Host command runner, or None for one built from *cfg*.
        replace: Whether to stop an already running kubelet before launch.

    Returns:
        Handle on the launched kubelet.

    Raises:
        BootstrapError: If any stage's precondition fails.
        sh.ErrorReturnCode: If an external command fails.
    """
    if cfg is None:
        cfg = BootstrapConfig()
    if shell is None:
        shell = HostShell(use_sudo=cfg.use_sudo)

    console.print("[yellow]\u2139\ufe0f  Starting kubelet setup and pod creation in standalone mode...[/yellow]")

    kubelet_binary = validate_kubelet_binary(binary)
    name = process_name(cfg, kubelet_binary)

    ensure_containerd(cfg, shell)
    ensure_cni(cfg, shell)
    report_kubelet_process(name, shell)
    generate_pod_manifest(cfg, shell)
    ensure_kubelet_config(cfg, shell)
    handle = start_kubelet(kubelet_binary, cfg, shell, replace=replace)
    check_kubelet_status(name, shell)

    console.print("[green]\u2705 Kubelet setup completed and the pod manifest has been loaded[/green]")
    return handle
