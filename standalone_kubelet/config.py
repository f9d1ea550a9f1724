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

"""Configuration model, CLI override resolution, and config display."""

from __future__ import annotations

from pathlib import Path

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from standalone_kubelet import console
from standalone_kubelet.constants import (
    CNI_GITHUB_REPO,
    DEFAULT_CGROUP_DRIVER,
    DEFAULT_CLUSTER_DNS,
    DEFAULT_CLUSTER_DOMAIN,
    DEFAULT_CNI_BIN_DIR,
    DEFAULT_CNI_CONF_DIR,
    DEFAULT_CNI_CONF_NAME,
    DEFAULT_CNI_VERSION,
    DEFAULT_CONTAINERD_CONFIG,
    DEFAULT_CONTAINERD_PACKAGE,
    DEFAULT_CONTAINERD_SERVICE,
    DEFAULT_CONTAINERD_SOCKET,
    DEFAULT_HEALTHZ_URL,
    DEFAULT_KUBELET_CONFIG,
    DEFAULT_KUBELET_VERBOSITY,
    DEFAULT_PID_FILE,
    DEFAULT_POD_IMAGE,
    DEFAULT_POD_MANIFEST_DIR,
    DEFAULT_POD_MANIFEST_NAME,
    DEFAULT_POD_PORT,
    DEFAULT_POD_SUBNET,
    DEFAULT_POLL_MAX_SECONDS,
    DEFAULT_POLL_MIN_SECONDS,
    DEFAULT_STARTUP_GRACE_SECONDS,
    DEFAULT_STARTUP_TIMEOUT_SECONDS,
    ENV_PREFIX,
)
from standalone_kubelet.errors import UsageError
from standalone_kubelet.utils import host_arch


# ============================================================================
# Configuration classes
# ============================================================================

class BootstrapConfig(BaseSettings):
    """Every host path, endpoint and knob used by the bootstrap stages.

    Auto-loaded from STANDALONE_KUBELET_* env vars.

    Attributes:
        kubelet_config: Kubelet configuration file path.
        containerd_socket: containerd control socket path.
        containerd_config: containerd configuration file path.
        containerd_package: apt package that provides containerd.
        containerd_service: systemd unit name of containerd.
        systemd_cgroup: Whether to enable SystemdCgroup in the generated containerd config.
        pod_manifest_dir: Static pod directory watched by the kubelet.
        pod_manifest_name: File name of the generated test pod manifest.
        cni_bin_dir: Directory holding the CNI plugin binaries.
        cni_conf_dir: Directory holding CNI network configurations.
        cni_conf_name: File name of the bridge network configuration.
        cni_version: CNI plugins release tag.
        cni_arch: Architecture suffix of the CNI release archive.
        pod_subnet: Subnet handed out by the bridge network IPAM.
        cgroup_driver: Kubelet cgroup driver.
        cluster_domain: Kubelet cluster domain.
        cluster_dns: Kubelet cluster DNS server address.
        pod_image: Container image of the test pod.
        pod_port: Container port of the test pod.
        kubelet_verbosity: Kubelet ``--v`` log level.
        process_name: Process name to match in the process table, or None
            to use the kubelet binary's basename.
        kubelet_log_file: File to append kubelet output to, or None to
            inherit the caller's stdout/stderr.
        pid_file: File recording the pid of the launched kubelet.
        healthz_url: Kubelet health endpoint, or None to skip the HTTP probe.
        startup_grace_seconds: Delay before the first readiness probe.
        startup_timeout_seconds: Maximum time to wait for readiness.
        poll_min_seconds: Smallest backoff between readiness probes.
        poll_max_seconds: Largest backoff between readiness probes.
        use_sudo: Whether host commands are elevated with sudo.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    kubelet_config: Path = DEFAULT_KUBELET_CONFIG
    containerd_socket: Path = DEFAULT_CONTAINERD_SOCKET
    containerd_config: Path = DEFAULT_CONTAINERD_CONFIG
    containerd_package: str = DEFAULT_CONTAINERD_PACKAGE
    containerd_service: str = DEFAULT_CONTAINERD_SERVICE
    systemd_cgroup: bool = True
    pod_manifest_dir: Path = DEFAULT_POD_MANIFEST_DIR
    pod_manifest_name: str = DEFAULT_POD_MANIFEST_NAME
    cni_bin_dir: Path = DEFAULT_CNI_BIN_DIR
    cni_conf_dir: Path = DEFAULT_CNI_CONF_DIR
    cni_conf_name: str = DEFAULT_CNI_CONF_NAME
    cni_version: str = Field(default=DEFAULT_CNI_VERSION, pattern=r"^v\d+\.\d+\.\d+$")
    cni_arch: str = Field(default_factory=host_arch)
    pod_subnet: str = Field(default=DEFAULT_POD_SUBNET, pattern=r"^\d{1,3}(\.\d{1,3}){3}/\d{1,2}$")
    cgroup_driver: str = Field(default=DEFAULT_CGROUP_DRIVER, pattern=r"^(systemd|cgroupfs)$")
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
    cluster_dns: str = DEFAULT_CLUSTER_DNS
    pod_image: str = DEFAULT_POD_IMAGE
    pod_port: int = Field(default=DEFAULT_POD_PORT, ge=1, le=65535)
    kubelet_verbosity: int = Field(default=DEFAULT_KUBELET_VERBOSITY, ge=0, le=10)
    process_name: str | None = None
    kubelet_log_file: Path | None = None
    pid_file: Path = DEFAULT_PID_FILE
    healthz_url: str | None = DEFAULT_HEALTHZ_URL
    startup_grace_seconds: float = Field(default=DEFAULT_STARTUP_GRACE_SECONDS, ge=0)
    startup_timeout_seconds: float = Field(default=DEFAULT_STARTUP_TIMEOUT_SECONDS, gt=0)
    poll_min_seconds: float = Field(default=DEFAULT_POLL_MIN_SECONDS, ge=0)
    poll_max_seconds: float = Field(default=DEFAULT_POLL_MAX_SECONDS, gt=0)
    use_sudo: bool = True

    @field_validator("healthz_url", mode="before")
    @classmethod
    def _empty_url_disables_probe(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def pod_manifest_file(self) -> Path:
        return self.pod_manifest_dir / self.pod_manifest_name

    @property
    def cni_conf_file(self) -> Path:
        return self.cni_conf_dir / self.cni_conf_name

    @property
    def runtime_endpoint(self) -> str:
        """containerd socket as a CRI endpoint URL."""
        return f"unix://{self.containerd_socket}"

    @property
    def cni_archive_url(self) -> str:
        """Download URL of the pinned CNI plugins release archive."""
        return (
            f"https://github.com/{CNI_GITHUB_REPO}/releases/download/{self.cni_version}/"
            f"cni-plugins-linux-{self.cni_arch}-{self.cni_version}.tgz"
        )


# ============================================================================
# Config resolution
# ============================================================================

def load_config(**overrides) -> BootstrapConfig:
    """Build the configuration, reporting invalid values as a usage error.

    Args:
        **overrides: Field values that take precedence over env vars.

    Raises:
        UsageError: If a value from the command line or environment is invalid.
    """
    try:
        return BootstrapConfig(**overrides)
    except pydantic.ValidationError as err:
        raise UsageError(f"Invalid configuration: {err}") from err


def resolve_config(
    use_sudo: bool | None = None,
    healthz_url: str | None = None,
    no_healthz: bool = False,
    startup_timeout: float | None = None,
    log_file: Path | None = None,
) -> BootstrapConfig:
    """Merge CLI overrides, environment variables, and defaults.

    Resolution priority: CLI arguments > STANDALONE_KUBELET_* env vars > defaults.

    Args:
        use_sudo: CLI override for sudo elevation, or None.
        healthz_url: CLI override for the kubelet health endpoint, or None.
        no_healthz: Whether to disable the HTTP readiness probe.
        startup_timeout: CLI override for the readiness timeout, or None.
        log_file: CLI override for the kubelet log file, or None.

    Returns:
        The resolved BootstrapConfig.
    """
    overrides: dict = {}
    if use_sudo is not None:
        overrides["use_sudo"] = use_sudo
    if healthz_url is not None:
        overrides["healthz_url"] = healthz_url
    if no_healthz:
        overrides["healthz_url"] = None
    if startup_timeout is not None:
        overrides["startup_timeout_seconds"] = startup_timeout
    if log_file is not None:
        overrides["kubelet_log_file"] = log_file
    return load_config(**overrides)


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: BootstrapConfig) -> None:
    """Print the resolved configuration.

    Args:
        cfg: Resolved bootstrap configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))

    console.print("[yellow]containerd:[/yellow]")
    console.print(f"  package         : {cfg.containerd_package}")
    console.print(f"  socket          : {cfg.containerd_socket}")
    console.print(f"  config          : {cfg.containerd_config}")

    console.print("[yellow]CNI:[/yellow]")
    console.print(f"  version         : {cfg.cni_version} ({cfg.cni_arch})")
    console.print(f"  bin_dir         : {cfg.cni_bin_dir}")
    console.print(f"  conf_file       : {cfg.cni_conf_file}")
    console.print(f"  pod_subnet      : {cfg.pod_subnet}")

    console.print("[yellow]kubelet:[/yellow]")
    console.print(f"  config          : {cfg.kubelet_config}")
    console.print(f"  manifest        : {cfg.pod_manifest_file}")
    console.print(f"  cgroup_driver   : {cfg.cgroup_driver}")
    console.print(f"  healthz_url     : {cfg.healthz_url or '(disabled)'}")
    console.print(f"  startup_timeout : {cfg.startup_timeout_seconds}s")
    console.print(f"  log_file        : {cfg.kubelet_log_file or '(inherit)'}")
    console.print(f"  use_sudo        : {cfg.use_sudo}")
