"""
Tests for runtime configuration checks and CMS URL resolution
"""
import pytest

from config.settings import DEFAULT_CMS_URL, Settings, validate_runtime_config

GOOD_SECRET = "a-long-enough-session-secret"


def make_settings(**overrides):
    values = {
        "node_env": "test",
        "session_secret": GOOD_SECRET,
        "port": 4000,
        "database_url": "sqlite+aiosqlite:///:memory:",
    }
    values.update(overrides)
    return Settings(**values)


def test_valid_config_passes():
    validate_runtime_config(make_settings())


@pytest.mark.parametrize("overrides,problem", [
    ({"session_secret": None}, "SESSION_SECRET is required"),
    ({"session_secret": "short"}, "at least 16 characters"),
    ({"port": 80}, "PORT must be between 1024 and 65535"),
    ({"port": 70000}, "PORT must be between 1024 and 65535"),
    ({"node_env": "staging"}, "NODE_ENV must be"),
    ({"node_env": "production"}, "SQLite is forbidden in production"),
])
def test_invalid_config_is_rejected(overrides, problem):
    with pytest.raises(RuntimeError, match=problem):
        validate_runtime_config(make_settings(**overrides))


def test_production_with_postgres_passes():
    validate_runtime_config(make_settings(
        node_env="production",
        database_url="postgresql+asyncpg://cms:cms@db/cms",
    ))


def test_all_problems_reported_together():
    with pytest.raises(RuntimeError) as excinfo:
        validate_runtime_config(make_settings(session_secret=None, port=1))

    assert "SESSION_SECRET" in str(excinfo.value)
    assert "PORT" in str(excinfo.value)


def test_cms_base_url_precedence():
    assert make_settings(
        cms_internal_url="http://cms.internal:4000/",
        cms_url="http://cms.example",
        next_public_cms_url="https://public.example",
    ).cms_base_url == "http://cms.internal:4000"
    assert make_settings(cms_url="http://cms.example/", next_public_cms_url="https://public.example").cms_base_url == "http://cms.example"
    assert make_settings(next_public_cms_url="https://public.example").cms_base_url == "https://public.example"


def test_cms_base_url_default(monkeypatch):
    for name in ("CMS_INTERNAL_URL", "CMS_URL", "NEXT_PUBLIC_CMS_URL"):
        monkeypatch.delenv(name, raising=False)
    assert make_settings().cms_base_url == DEFAULT_CMS_URL


def test_csv_settings():
    settings = make_settings(allowed_origins="https://a.example, https://b.example,", blocked_ips="1.2.3.4 ,5.6.7.8")
    assert settings.allowed_origins_list == ["https://a.example", "https://b.example"]
    assert settings.blocked_ips_set == {"1.2.3.4", "5.6.7.8"}
