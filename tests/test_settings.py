from __future__ import annotations

from authgate.settings import get_settings


def test_defaults(monkeypatch):
    for name in ("PRODUCTION_MODE", "AUTH_CALLBACK_SCHEME", "DEEP_LINK_SCHEMES"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.production_mode is False
    assert s.users_storage_key == "users"
    assert s.callback_scheme == "authgate"
    assert s.deep_link_scheme_list == []


def test_env_overrides_and_normalization(monkeypatch):
    monkeypatch.setenv("PRODUCTION_MODE", "true")
    monkeypatch.setenv("AUTH_CALLBACK_SCHEME", "MyApp://")
    monkeypatch.setenv("DEEP_LINK_SCHEMES", "myapp, Chat ,,")
    s = get_settings()
    assert s.production_mode is True
    assert s.callback_scheme == "myapp"
    assert s.deep_link_scheme_list == ["myapp", "chat"]
