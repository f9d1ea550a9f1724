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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned component versions from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Host paths --
DEFAULT_KUBELET_CONFIG = Path("/var/lib/kubelet/config.yaml")
DEFAULT_CONTAINERD_SOCKET = Path("/run/containerd/containerd.sock")
DEFAULT_CONTAINERD_CONFIG = Path("/etc/containerd/config.toml")
DEFAULT_POD_MANIFEST_DIR = Path("/etc/kubernetes/manifests")
DEFAULT_POD_MANIFEST_NAME = "test-pod.yaml"
DEFAULT_CNI_BIN_DIR = Path("/opt/cni/bin")
DEFAULT_CNI_CONF_DIR = Path("/etc/cni/net.d")
DEFAULT_CNI_CONF_NAME = "10-bridge.conf"
DEFAULT_PID_FILE = Path("/run/standalone-kubelet.pid")

# -- containerd --
DEFAULT_CONTAINERD_PACKAGE = dep_value("containerd", "package", default="containerd.io")
DEFAULT_CONTAINERD_SERVICE = dep_value("containerd", "service", default="containerd")
CONTAINERD_BINARY = "containerd"
SYSTEMD_CGROUP_DISABLED = "SystemdCgroup = false"
SYSTEMD_CGROUP_ENABLED = "SystemdCgroup = true"

# -- CNI --
DEFAULT_CNI_VERSION = dep_value("cni_plugins", "version", default="v1.2.0")
CNI_GITHUB_REPO = dep_value("cni_plugins", "repo", default="containernetworking/plugins")
CNI_SPEC_VERSION = "0.4.0"
CNI_NETWORK_NAME = "bridge"
CNI_BRIDGE_DEVICE = "cni0"
DEFAULT_POD_SUBNET = "10.244.0.0/16"
DEFAULT_ROUTE = "0.0.0.0/0"

# Kernel arch name -> release archive arch suffix.
ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}

# -- Kubelet --
KUBELET_CONFIG_API_VERSION = "kubelet.config.k8s.io/v1beta1"
KUBELET_CONFIG_KIND = "KubeletConfiguration"
KUBELET_BIND_ADDRESS = "0.0.0.0"
KUBELET_AUTHORIZATION_MODE = "AlwaysAllow"
DEFAULT_CGROUP_DRIVER = "systemd"
DEFAULT_CLUSTER_DOMAIN = "cluster.local"
DEFAULT_CLUSTER_DNS = "10.96.0.10"
DEFAULT_KUBELET_VERBOSITY = 2
DEFAULT_HEALTHZ_URL = "http://127.0.0.1:10248/healthz"
HEALTHZ_REQUEST_TIMEOUT_SECONDS = 2
# /proc/<pid>/comm is truncated to 15 characters.
PROCESS_NAME_MAX_LEN = 15

# -- Readiness --
DEFAULT_STARTUP_GRACE_SECONDS = 5.0
DEFAULT_STARTUP_TIMEOUT_SECONDS = 60.0
DEFAULT_POLL_MIN_SECONDS = 1.0
DEFAULT_POLL_MAX_SECONDS = 5.0
STOP_TIMEOUT_SECONDS = 10.0

# -- Test workload --
TEST_POD_NAME = dep_value("test_pod", "name", default="test-pod")
TEST_POD_NAMESPACE = "default"
TEST_POD_CONTAINER = dep_value("test_pod", "container", default="nginx")
DEFAULT_POD_IMAGE = dep_value("test_pod", "image", default="nginx:latest")
DEFAULT_POD_PORT = dep_value("test_pod", "port", default=80)

# -- Environment --
ENV_PREFIX = "STANDALONE_KUBELET_"
