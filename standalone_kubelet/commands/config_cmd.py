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

"""Config subcommands (show)."""

from __future__ import annotations

import typer

from standalone_kubelet.commands import exit_on_error
from standalone_kubelet.config import display_config, load_config

app = typer.Typer(help="Inspect the resolved configuration.")


@app.command()
def show() -> None:
    """Print configuration resolved from STANDALONE_KUBELET_* env vars and defaults."""
    with exit_on_error():
        display_config(load_config())
