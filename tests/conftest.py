import pytest

from h1vault.vault import VaultStore


@pytest.fixture
def vault(tmp_path):
    return VaultStore(tmp_path / "vault")


@pytest.fixture
def clean_env(monkeypatch):
    from h1vault.config import ENV_KEYS

    # setenv first so monkeypatch also removes values loaded from .env files
    for env_key in ENV_KEYS.values():
        monkeypatch.setenv(env_key, "")
        monkeypatch.delenv(env_key)
