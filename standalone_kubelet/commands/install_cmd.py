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

"""Install subcommands (runtime, cni)."""

from __future__ import annotations

import typer

from standalone_kubelet.cni import ensure_cni
from standalone_kubelet.commands import exit_on_error, host
from standalone_kubelet.config import load_config
from standalone_kubelet.runtime import ensure_containerd

app = typer.Typer(help="Install node components.")


@app.command()
def runtime() -> None:
    """Install, configure and start containerd if needed."""
    with exit_on_error():
        cfg = load_config()
        ensure_containerd(cfg, host(cfg))


@app.command()
def cni(
    version: str | None = typer.Option(None, "--version", help="CNI plugins release tag"),
    arch: str | None = typer.Option(None, "--arch", help="CNI release archive architecture"),
) -> None:
    """Install CNI plugin binaries and the bridge network config if needed."""
    with exit_on_error():
        overrides: dict = {}
        if version is not None:
            overrides["cni_version"] = version
        if arch is not None:
            overrides["cni_arch"] = arch
        cfg = load_config(**overrides)
        ensure_cni(cfg, host(cfg))
