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

"""Subcommands of standalone-kubelet-ctl and their shared helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import typer

from standalone_kubelet import err_console
from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.errors import BootstrapError
from standalone_kubelet.utils import HostShell


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def fail(err: Exception) -> typer.Exit:
    """Print a fatal error and build the matching exit."""
    err_console.print(f"[red]\u274c {err}[/red]")
    return typer.Exit(code=err.exit_code if isinstance(err, BootstrapError) else 1)


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn any failure inside the block into a printed error and exit code."""
    try:
        yield
    except typer.Exit:
        raise
    except Exception as e:
        raise fail(e) from e


def host(cfg: BootstrapConfig) -> HostShell:
    return HostShell(use_sudo=cfg.use_sudo)
