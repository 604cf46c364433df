from __future__ import annotations

from toolgate.config import DispatchConfig, load_dispatch_config

_VARS = (
    "TOOLGATE_READ_ONLY",
    "TOOLGATE_DISABLE_DESTRUCTIVE",
    "TOOLGATE_ALLOW_DESTRUCTIVE_TOOLS",
    "TOOLGATE_TOOLSETS",
    "TOOLGATE_TIMEOUT_DEFAULT_SECONDS",
    "TOOLGATE_TIMEOUT_MAX_SECONDS",
    "TOOLGATE_TOOL_TIMEOUTS",
    "TOOLGATE_DISCOVERY_TTL_SECONDS",
    "TOOLGATE_LIST_CACHE_TTL_SECONDS",
    "TOOLGATE_AUDIT_LOG",
    "TOOLGATE_KUBECONTEXT",
    "LOG_LEVEL",
)


def test_defaults(monkeypatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    cfg = load_dispatch_config()
    assert cfg == DispatchConfig()
    assert cfg.toolsets == ["core"]
    assert cfg.timeouts.default_seconds == 30
    assert cfg.timeouts.max_seconds == 0
    assert cfg.cache.discovery_ttl_seconds == 300
    assert cfg.audit_log_path is None


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TOOLGATE_READ_ONLY", "true")
    monkeypatch.setenv("TOOLGATE_DISABLE_DESTRUCTIVE", "1")
    monkeypatch.setenv("TOOLGATE_ALLOW_DESTRUCTIVE_TOOLS", "k8s.delete, k8s.scale,")
    monkeypatch.setenv("TOOLGATE_TOOLSETS", "core,aws")
    monkeypatch.setenv("TOOLGATE_TIMEOUT_DEFAULT_SECONDS", "0")
    monkeypatch.setenv("TOOLGATE_TIMEOUT_MAX_SECONDS", "15")
    monkeypatch.setenv("TOOLGATE_TOOL_TIMEOUTS", "k8s.logs=60, bad, k8s.x=abc")
    monkeypatch.setenv("TOOLGATE_LIST_CACHE_TTL_SECONDS", "30")
    monkeypatch.setenv("TOOLGATE_AUDIT_LOG", "-")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = load_dispatch_config()
    assert cfg.read_only is True
    assert cfg.disable_destructive is True
    assert cfg.allow_destructive_tools == frozenset({"k8s.delete", "k8s.scale"})
    assert cfg.toolsets == ["core", "aws"]
    assert cfg.timeouts.default_seconds == 0
    assert cfg.timeouts.max_seconds == 15
    assert cfg.timeouts.per_tool == {"k8s.logs": 60}
    assert cfg.cache.list_ttl_seconds == 30
    assert cfg.audit_log_path == "-"
    assert cfg.log_level == "DEBUG"


def test_malformed_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("TOOLGATE_TIMEOUT_DEFAULT_SECONDS", "soon")
    monkeypatch.setenv("TOOLGATE_DISCOVERY_TTL_SECONDS", "")
    cfg = load_dispatch_config()
    assert cfg.timeouts.default_seconds == 30
    assert cfg.cache.discovery_ttl_seconds == 300
