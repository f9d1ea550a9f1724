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

"""
standalone-kubelet - bootstrap containerd, CNI and a standalone kubelet.

Installs containerd and the CNI plugins when missing, writes the bridge
network config, the kubelet config and a static nginx test pod, then starts
the given kubelet binary in the background and waits until it is healthy.

Environment Variables:
    Every path and knob can be overridden via STANDALONE_KUBELET_* variables:
    - STANDALONE_KUBELET_KUBELET_CONFIG (default: /var/lib/kubelet/config.yaml)
    - STANDALONE_KUBELET_CONTAINERD_SOCKET (default: /run/containerd/containerd.sock)
    - STANDALONE_KUBELET_POD_MANIFEST_DIR (default: /etc/kubernetes/manifests)
    - STANDALONE_KUBELET_CNI_VERSION (default: from dependencies.yaml)
    - And more (see BootstrapConfig for the full list)

Examples:
    # Full setup
    standalone-kubelet /usr/local/bin/kubelet

    # Re-run on a host where the kubelet is already running
    standalone-kubelet --replace /usr/local/bin/kubelet

    # Running as root, kubelet output to a file
    standalone-kubelet --no-sudo --log-file /var/log/kubelet.log /usr/local/bin/kubelet
"""

from __future__ import annotations

from pathlib import Path

import typer

from standalone_kubelet.commands import fail, setup_logging
from standalone_kubelet.config import display_config, resolve_config
from standalone_kubelet.orchestrator import run_standalone_setup

app = typer.Typer(help="Bootstrap containerd, CNI and a standalone kubelet.")


@app.command()
def main(
    kubelet_binary: str = typer.Argument(..., help="Path to the kubelet executable"),
    replace: bool = typer.Option(
        False, "--replace", help="Stop an already running kubelet before launching"),
    no_sudo: bool = typer.Option(
        False, "--no-sudo", help="Run host commands without sudo (when already root)"),
    healthz_url: str | None = typer.Option(
        None, "--healthz-url", help="Kubelet health endpoint used as readiness signal"),
    no_healthz: bool = typer.Option(
        False, "--no-healthz", help="Only wait for the kubelet process, not its health endpoint"),
    startup_timeout: float | None = typer.Option(
        None, "--startup-timeout", min=0.1, help="Seconds to wait for the kubelet to become ready"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Append kubelet output to this file"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every host command"),
) -> None:
    """Set up containerd, CNI, kubelet config and a static pod, then start the kubelet."""
    setup_logging(verbose)

    try:
        cfg = resolve_config(
            use_sudo=False if no_sudo else None,
            healthz_url=healthz_url,
            no_healthz=no_healthz,
            startup_timeout=startup_timeout,
            log_file=log_file,
        )
        display_config(cfg)
        run_standalone_setup(kubelet_binary, cfg, replace=replace)
    except Exception as e:
        raise fail(e) from e


def run() -> None:
    app()


if __name__ == "__main__":
    run()
