import pytest
import sh
from typer.testing import CliRunner

from standalone_kubelet import cli, main
from standalone_kubelet.commands import kubelet_cmd
from standalone_kubelet.utils import HostShell

runner = CliRunner()


@pytest.fixture
def no_host_commands(monkeypatch):
    """Fail the test if anything reaches the host."""
    def forbidden(self, *args, **kwargs):
        raise AssertionError(f"unexpected host command: {args}")

    monkeypatch.setattr(HostShell, "run", forbidden)
    monkeypatch.setattr(HostShell, "spawn", forbidden)


@pytest.mark.parametrize("args", [[], ["/usr/bin/kubelet", "/usr/bin/extra"]])
def test_wrong_argument_count_is_usage_error(no_host_commands, args):
    result = runner.invoke(main.app, args)

    assert result.exit_code == 2


def test_non_executable_binary_exits_with_validation_code(no_host_commands, host_root):
    result = runner.invoke(main.app, [str(host_root / "kubelet")])

    assert result.exit_code == 3


def test_success_passes_flags(monkeypatch, kubelet_binary):
    seen = {}

    def fake_setup(binary, cfg, replace=False):
        seen.update(binary=binary, cfg=cfg, replace=replace)

    monkeypatch.setattr(main, "run_standalone_setup", fake_setup)

    result = runner.invoke(main.app, [
        "--replace", "--no-sudo", "--no-healthz", "--startup-timeout", "9", str(kubelet_binary),
    ])

    assert result.exit_code == 0, result.output
    assert seen["binary"] == str(kubelet_binary)
    assert seen["replace"] is True
    assert seen["cfg"].use_sudo is False
    assert seen["cfg"].healthz_url is None
    assert seen["cfg"].startup_timeout_seconds == 9


def test_external_command_failure_exits_1(monkeypatch, kubelet_binary):
    def boom(binary, cfg, replace=False):
        raise sh.ErrorReturnCode_100("apt install -y containerd.io", b"", b"E: Unable to locate package containerd.io")

    monkeypatch.setattr(main, "run_standalone_setup", boom)

    result = runner.invoke(main.app, [str(kubelet_binary)])

    assert result.exit_code == 1


def test_ctl_render_pod_manifest(no_host_commands):
    result = runner.invoke(cli.app, ["render", "pod-manifest"])

    assert result.exit_code == 0
    assert "image: nginx:latest" in result.output
    assert "containerPort: 80" in result.output


def test_ctl_render_cni_config(no_host_commands):
    result = runner.invoke(cli.app, ["render", "cni-config"])

    assert result.exit_code == 0
    assert '"subnet": "10.244.0.0/16"' in result.output


def test_ctl_config_show(no_host_commands):
    result = runner.invoke(cli.app, ["config", "show"])

    assert result.exit_code == 0
    assert "/var/lib/kubelet/config.yaml" in result.output


def test_ctl_kubelet_status(monkeypatch):
    monkeypatch.setattr(HostShell, "find_pids", lambda self, name: [])
    assert runner.invoke(cli.app, ["kubelet", "status"]).exit_code == 6

    monkeypatch.setattr(HostShell, "find_pids", lambda self, name: [321])
    result = runner.invoke(cli.app, ["kubelet", "status"])
    assert result.exit_code == 0
    assert "321" in result.output


def test_ctl_kubelet_start_refuses_second_instance(monkeypatch, cfg, shell, kubelet_binary):
    shell.pids["kubelet"] = [101]
    monkeypatch.setattr(kubelet_cmd, "load_config", lambda: cfg)
    monkeypatch.setattr(kubelet_cmd, "host", lambda _cfg: shell)

    result = runner.invoke(cli.app, ["kubelet", "start", str(kubelet_binary)])

    assert result.exit_code == 7
    assert shell.spawned == []


def test_ctl_help_lists_command_groups():
    result = runner.invoke(cli.app, ["--help"])

    assert result.exit_code == 0
    assert "install" in result.output
    assert "kubelet" in result.output


def test_ctl_install_cni_rejects_malformed_version(no_host_commands):
    result = runner.invoke(cli.app, ["install", "cni", "--version", "1.2"])

    assert result.exit_code == 2


def test_invalid_env_setting_is_usage_error(no_host_commands, monkeypatch, kubelet_binary):
    monkeypatch.setenv("STANDALONE_KUBELET_CGROUP_DRIVER", "bogus")

    result = runner.invoke(main.app, [str(kubelet_binary)])

    assert result.exit_code == 2
