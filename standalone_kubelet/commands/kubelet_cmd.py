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

"""Kubelet subcommands (start, status, stop)."""

from __future__ import annotations

import typer

from standalone_kubelet import console
from standalone_kubelet.commands import exit_on_error, host
from standalone_kubelet.config import load_config
from standalone_kubelet.kubelet import (
    check_kubelet_status,
    ensure_kubelet_config,
    generate_pod_manifest,
    process_name,
    start_kubelet,
    stop_kubelet,
    validate_kubelet_binary,
)

app = typer.Typer(help="Manage the standalone kubelet process.")


@app.command()
def start(
    kubelet_binary: str = typer.Argument(..., help="Path to the kubelet executable"),
    replace: bool = typer.Option(
        False, "--replace", help="Stop an already running kubelet before launching"),
) -> None:
    """Write the pod manifest and kubelet config, then launch the kubelet.

    Assumes containerd and CNI are already in place (see install).
    """
    with exit_on_error():
        cfg = load_config()
        shell = host(cfg)
        binary = validate_kubelet_binary(kubelet_binary)
        generate_pod_manifest(cfg, shell)
        ensure_kubelet_config(cfg, shell)
        handle = start_kubelet(binary, cfg, shell, replace=replace)
        console.print(f"[green]\u2705 Kubelet running with pid {handle.pid}[/green]")


@app.command()
def status() -> None:
    """Exit 0 when a kubelet process is running."""
    with exit_on_error():
        cfg = load_config()
        check_kubelet_status(process_name(cfg), host(cfg))


@app.command()
def stop(
    all_processes: bool = typer.Option(
        False, "--all", help="Stop every kubelet process, not only the one in the pid file"),
) -> None:
    """Stop the kubelet launched by this tool."""
    with exit_on_error():
        cfg = load_config()
        stop_kubelet(cfg, host(cfg), all_processes=all_processes)
