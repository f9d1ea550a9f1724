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

"""Kubelet config, CNI bridge config, and test pod manifest documents."""

from __future__ import annotations

import json

import yaml

from standalone_kubelet.config import BootstrapConfig
from standalone_kubelet.constants import (
    CNI_BRIDGE_DEVICE,
    CNI_NETWORK_NAME,
    CNI_SPEC_VERSION,
    DEFAULT_ROUTE,
    KUBELET_AUTHORIZATION_MODE,
    KUBELET_BIND_ADDRESS,
    KUBELET_CONFIG_API_VERSION,
    KUBELET_CONFIG_KIND,
    TEST_POD_CONTAINER,
    TEST_POD_NAME,
    TEST_POD_NAMESPACE,
)


def kubelet_config(cfg: BootstrapConfig) -> dict:
    """Build the KubeletConfiguration for standalone mode.

    Anonymous auth with AlwaysAllow authorization, swap tolerated, static
    pods read from the manifest directory.

    Args:
        cfg: Bootstrap configuration with endpoint, paths and DNS settings.

    Returns:
        KubeletConfiguration resource as a dictionary ready for YAML serialization.
    """
    return {
        "apiVersion": KUBELET_CONFIG_API_VERSION,
        "kind": KUBELET_CONFIG_KIND,
        "address": KUBELET_BIND_ADDRESS,
        "authentication": {
            "anonymous": {"enabled": True},
            "webhook": {"enabled": False},
        },
        "authorization": {"mode": KUBELET_AUTHORIZATION_MODE},
        "failSwapOn": False,
        "containerRuntimeEndpoint": cfg.runtime_endpoint,
        "staticPodPath": str(cfg.pod_manifest_dir),
        "cgroupDriver": cfg.cgroup_driver,
        "clusterDomain": cfg.cluster_domain,
        "clusterDNS": [cfg.cluster_dns],
    }


def cni_bridge_config(cfg: BootstrapConfig) -> dict:
    """Build the bridge network configuration with host-local IPAM.

    Args:
        cfg: Bootstrap configuration with the pod subnet.

    Returns:
        CNI network configuration as a dictionary ready for JSON serialization.
    """
    return {
        "cniVersion": CNI_SPEC_VERSION,
        "name": CNI_NETWORK_NAME,
        "type": "bridge",
        "bridge": CNI_BRIDGE_DEVICE,
        "isGateway": True,
        "ipMasq": True,
        "ipam": {
            "type": "host-local",
            "ranges": [[{"subnet": cfg.pod_subnet}]],
            "routes": [{"dst": DEFAULT_ROUTE}],
        },
    }


def pod_manifest(cfg: BootstrapConfig) -> dict:
    """Build the static test pod: one container serving one port.

    Args:
        cfg: Bootstrap configuration with the pod image and port.

    Returns:
        Pod resource as a dictionary ready for YAML serialization.
    """
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": TEST_POD_NAME, "namespace": TEST_POD_NAMESPACE},
        "spec": {
            "containers": [
                {
                    "name": TEST_POD_CONTAINER,
                    "image": cfg.pod_image,
                    "ports": [{"containerPort": cfg.pod_port}],
                }
            ]
        },
    }


def to_yaml(document: dict) -> str:
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


def to_json(document: dict) -> str:
    return json.dumps(document, indent=2) + "\n"


def render_kubelet_config(cfg: BootstrapConfig) -> str:
    return to_yaml(kubelet_config(cfg))


def render_cni_config(cfg: BootstrapConfig) -> str:
    return to_json(cni_bridge_config(cfg))


def render_pod_manifest(cfg: BootstrapConfig) -> str:
    return to_yaml(pod_manifest(cfg))
