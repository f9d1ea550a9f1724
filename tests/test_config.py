from pathlib import Path

import pydantic
import pytest

from standalone_kubelet.config import BootstrapConfig, load_config, resolve_config
from standalone_kubelet.constants import dep_value
from standalone_kubelet.errors import UsageError


def test_defaults_match_host_layout():
    cfg = BootstrapConfig()

    assert cfg.kubelet_config == Path("/var/lib/kubelet/config.yaml")
    assert cfg.containerd_socket == Path("/run/containerd/containerd.sock")
    assert cfg.pod_manifest_file == Path("/etc/kubernetes/manifests/test-pod.yaml")
    assert cfg.cni_conf_file == Path("/etc/cni/net.d/10-bridge.conf")
    assert cfg.cni_bin_dir == Path("/opt/cni/bin")
    assert cfg.runtime_endpoint == "unix:///run/containerd/containerd.sock"
    assert cfg.cni_version == "v1.2.0"
    assert cfg.containerd_package == "containerd.io"


def test_cni_archive_url():
    cfg = BootstrapConfig(cni_version="v1.2.0", cni_arch="amd64")

    assert cfg.cni_archive_url == (
        "https://github.com/containernetworking/plugins/releases/download/"
        "v1.2.0/cni-plugins-linux-amd64-v1.2.0.tgz"
    )


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("STANDALONE_KUBELET_KUBELET_CONFIG", "/tmp/kubelet.yaml")
    monkeypatch.setenv("STANDALONE_KUBELET_USE_SUDO", "false")
    monkeypatch.setenv("STANDALONE_KUBELET_STARTUP_TIMEOUT_SECONDS", "12.5")

    cfg = BootstrapConfig()

    assert cfg.kubelet_config == Path("/tmp/kubelet.yaml")
    assert cfg.use_sudo is False
    assert cfg.startup_timeout_seconds == 12.5


def test_empty_healthz_env_disables_probe(monkeypatch):
    monkeypatch.setenv("STANDALONE_KUBELET_HEALTHZ_URL", "")

    assert BootstrapConfig().healthz_url is None


@pytest.mark.parametrize("field,value", [
    ("cgroup_driver", "upstart"),
    ("cni_version", "1.2"),
    ("kubelet_verbosity", 11),
    ("pod_subnet", "not-a-cidr"),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(pydantic.ValidationError):
        BootstrapConfig(**{field: value})


def test_resolve_config_cli_beats_env(monkeypatch):
    monkeypatch.setenv("STANDALONE_KUBELET_STARTUP_TIMEOUT_SECONDS", "90")

    cfg = resolve_config(use_sudo=False, startup_timeout=3, log_file=Path("/tmp/k.log"))

    assert cfg.use_sudo is False
    assert cfg.startup_timeout_seconds == 3
    assert cfg.kubelet_log_file == Path("/tmp/k.log")


def test_resolve_config_no_healthz_wins():
    cfg = resolve_config(healthz_url="http://127.0.0.1:9999/healthz", no_healthz=True)

    assert cfg.healthz_url is None


def test_invalid_env_value_is_usage_error(monkeypatch):
    monkeypatch.setenv("STANDALONE_KUBELET_POD_PORT", "0")

    with pytest.raises(UsageError) as exc_info:
        load_config()

    assert exc_info.value.exit_code == 2
    assert "pod_port" in str(exc_info.value)


def test_invalid_override_is_usage_error():
    with pytest.raises(UsageError):
        load_config(cni_version="1.2")


def test_dep_value_missing_key_returns_default():
    assert dep_value("cni_plugins", "version") == "v1.2.0"
    assert dep_value("cni_plugins", "nope", default="x") == "x"
    assert dep_value("cni_plugins", "version", "deeper", default=None) is None
