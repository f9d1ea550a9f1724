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
cli.py - Per-stage operator commands for a standalone kubelet node.

Subcommands:
    install    Install node components (runtime, cni)
    render     Print generated documents (kubelet-config, cni-config, pod-manifest)
    config     Inspect the resolved configuration (show)
    kubelet    Manage the kubelet process (start, status, stop)

Examples:
    # Install containerd only
    standalone-kubelet-ctl install runtime

    # Preview the kubelet config that would be written
    standalone-kubelet-ctl render kubelet-config

    # Restart the kubelet without re-running the install stages
    standalone-kubelet-ctl kubelet start --replace /usr/local/bin/kubelet

For the full bootstrap in one go, run: standalone-kubelet /path/to/kubelet
"""

from __future__ import annotations

import typer

from standalone_kubelet.commands import (
    config_cmd,
    install_cmd,
    kubelet_cmd,
    render_cmd,
    setup_logging,
)

app = typer.Typer(
    help="Per-stage operator commands for a standalone kubelet node.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every host command"),
) -> None:
    """Initialize logging for all subcommands."""
    setup_logging(verbose)


app.add_typer(install_cmd.app, name="install")
app.add_typer(render_cmd.app, name="render")
app.add_typer(config_cmd.app, name="config")
app.add_typer(kubelet_cmd.app, name="kubelet")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
