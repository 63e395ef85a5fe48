"""
Startup guard: refuse insecure production configuration.
"""
import pytest

from backend.web import config


def _prod(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TESSERA_ENV", "prod")
    for var in ("TESSERA_ENABLE_DEV_LOGIN", "TESSERA_DATABASE_URL", "DATABASE_URL", "TESSERA_FILE_STORE_ROOT"):
        monkeypatch.delenv(var, raising=False)


def test_dev_is_permissive(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TESSERA_ENV", "dev")
    monkeypatch.setenv("TESSERA_ENABLE_DEV_LOGIN", "true")
    monkeypatch.setenv("DATABASE_URL", "postgresql://x@localhost/db?sslmode=disable")
    config.ensure_secure_config_on_startup()
    assert config.dev_login_enabled()


def test_prod_with_clean_env_starts(monkeypatch: pytest.MonkeyPatch):
    _prod(monkeypatch)
    config.ensure_secure_config_on_startup()
    assert not config.dev_login_enabled()


def test_prod_refuses_dev_login(monkeypatch: pytest.MonkeyPatch):
    _prod(monkeypatch)
    monkeypatch.setenv("TESSERA_ENABLE_DEV_LOGIN", "true")
    with pytest.raises(SystemExit, match="TESSERA_ENABLE_DEV_LOGIN"):
        config.ensure_secure_config_on_startup()


def test_staging_refuses_sslmode_disable(monkeypatch: pytest.MonkeyPatch):
    _prod(monkeypatch)
    monkeypatch.setenv("TESSERA_ENV", "staging")
    monkeypatch.setenv("TESSERA_DATABASE_URL", "postgresql://x@db/tessera?sslmode=disable")
    monkeypatch.setenv("TESSERA_FILE_STORE_ROOT", "/srv/files")
    with pytest.raises(SystemExit, match="sslmode=disable"):
        config.ensure_secure_config_on_startup()


def test_prod_database_requires_file_store_root(monkeypatch: pytest.MonkeyPatch):
    _prod(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "postgresql://x@db/tessera?sslmode=require")
    with pytest.raises(SystemExit, match="TESSERA_FILE_STORE_ROOT"):
        config.ensure_secure_config_on_startup()
    monkeypatch.setenv("TESSERA_FILE_STORE_ROOT", "/srv/files")
    config.ensure_secure_config_on_startup()
