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

"""Bootstrap failures and the process exit code each one maps to."""

from __future__ import annotations


class BootstrapError(RuntimeError):
    """Base class for fatal bootstrap failures."""

    exit_code = 1


class UsageError(BootstrapError):
    """Bad or missing command-line arguments."""

    exit_code = 2


class ValidationError(BootstrapError):
    """The kubelet binary is missing or not executable."""

    exit_code = 3


class DependencyError(BootstrapError):
    """The container runtime is not usable after an install attempt."""

    exit_code = 4


class StartupError(BootstrapError):
    """The kubelet exited or never became ready after launch."""

    exit_code = 5


class LivenessError(BootstrapError):
    """No kubelet process is running."""

    exit_code = 6


class AlreadyRunningError(BootstrapError):
    """A kubelet process was already running before launch."""

    exit_code = 7

    def __init__(self, pids: list[int]) -> None:
        self.pids = pids
        joined = ", ".join(str(pid) for pid in pids)
        super().__init__(
            f"Kubelet is already running (pid {joined}); use --replace to restart it"
        )
