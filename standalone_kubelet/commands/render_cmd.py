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

"""Render subcommands: print generated documents without touching the host."""

from __future__ import annotations

import typer

from standalone_kubelet.commands import exit_on_error
from standalone_kubelet.config import load_config
from standalone_kubelet.manifests import (
    render_cni_config,
    render_kubelet_config,
    render_pod_manifest,
)

app = typer.Typer(help="Print generated configuration documents.")


@app.command("kubelet-config")
def kubelet_config() -> None:
    """Print the KubeletConfiguration YAML."""
    with exit_on_error():
        typer.echo(render_kubelet_config(load_config()), nl=False)


@app.command("cni-config")
def cni_config() -> None:
    """Print the bridge network JSON."""
    with exit_on_error():
        typer.echo(render_cni_config(load_config()), nl=False)


@app.command("pod-manifest")
def pod_manifest() -> None:
    """Print the static test pod YAML."""
    with exit_on_error():
        typer.echo(render_pod_manifest(load_config()), nl=False)
