import pytest

from dcr.errors import ConfigError
from dcr.settings import Config, load_config, parse_settings


def test_defaults():
    cfg = Config()
    assert cfg.timing.check_interval == 90
    assert cfg.timing.stop_timeout == 30
    assert cfg.whitelist.images == []


def test_empty_file_gives_defaults(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("")

    assert load_config(p) == Config()


def test_partial_file_keeps_other_defaults(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("timing:\n  stop_timeout: 10\nwhitelist:\n  images: [pause-amd64, kube-proxy]\nextra: ignored\n")

    cfg = load_config(p)

    assert cfg.timing.check_interval == 90
    assert cfg.timing.stop_timeout == 10
    assert cfg.whitelist.images == ["pause-amd64", "kube-proxy"]


@pytest.mark.parametrize(
    "content",
    [
        "timing:\n  stop_timeout: -1\n",
        "timing:\n  check_interval: 0\n",
        "timing:\n  check_interval: soon\n",
        "- just\n- a list\n",
        "timing: [unclosed\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path, content):
    p = tmp_path / "config.yaml"
    p.write_text(content)

    with pytest.raises(ConfigError):
        load_config(p)


def test_missing_file_is_rejected(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read config file"):
        load_config(tmp_path / "nope.yaml")


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("NODE", "node-7")
    monkeypatch.setenv("MODE", "remove")
    monkeypatch.setenv("DCR_STATUS_PORT", "8080")

    s = parse_settings([])

    assert s.node == "node-7"
    assert s.mode == "remove"
    assert s.status_port == 8080
    assert s.kubeconfig == str(tmp_path / ".kube" / "config")
    assert s.config_path == "/config/config.yaml"


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("NODE", "node-7")
    monkeypatch.setenv("MODE", "remove")

    s = parse_settings(["--node", "node-8", "--mode", "watch", "--context", "prod", "--config", "/etc/dcr.yaml"])

    assert (s.node, s.mode, s.context, s.config_path) == ("node-8", "watch", "prod", "/etc/dcr.yaml")


def test_mode_defaults_to_watch(monkeypatch):
    monkeypatch.delenv("MODE", raising=False)
    assert parse_settings([]).mode == "watch"


@pytest.mark.parametrize("argv", [["--mode", "delete"], ["--status-port", "70000"]])
def test_bad_flags_exit(argv):
    with pytest.raises(SystemExit):
        parse_settings(argv)


def test_unknown_mode_from_environment_exits(monkeypatch):
    monkeypatch.setenv("MODE", "nuke")
    with pytest.raises(SystemExit):
        parse_settings([])
