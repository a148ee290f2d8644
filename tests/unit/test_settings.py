"""
Unit tests for environment-driven configuration.
"""

import pytest

from src.config.settings import Settings

R2_ENV_VARS = [
    "R2_ACCOUNT_ID",
    "R2_ENDPOINT_URL",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET_NAME",
    "R2_MOCK_MODE",
    "R2_VERIFY_SSL",
    "R2_CA_BUNDLE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's own R2_* variables out of these tests."""
    for name in R2_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings loading and validation."""

    def test_reads_storage_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("R2_ENDPOINT_URL", "https://store.example.com")
        monkeypatch.setenv("R2_ACCESS_KEY_ID", "key")
        monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "secret")
        monkeypatch.setenv("R2_BUCKET_NAME", "downloads")

        settings = Settings(_env_file=None)

        assert settings.r2_endpoint == "https://store.example.com"
        assert settings.validate_required_fields() == []

    def test_endpoint_derived_from_account_id(self, monkeypatch):
        monkeypatch.setenv("R2_ACCOUNT_ID", "acct123")

        settings = Settings(_env_file=None)

        assert settings.r2_endpoint == "https://acct123.r2.cloudflarestorage.com"

    def test_missing_credentials_are_listed(self):
        settings = Settings(_env_file=None)

        assert settings.validate_required_fields() == [
            "R2_ENDPOINT_URL or R2_ACCOUNT_ID",
            "R2_ACCESS_KEY_ID",
            "R2_SECRET_ACCESS_KEY",
            "R2_BUCKET_NAME",
        ]

    def test_mock_mode_needs_no_credentials(self, monkeypatch):
        monkeypatch.setenv("R2_MOCK_MODE", "true")

        settings = Settings(_env_file=None)

        assert settings.validate_required_fields() == []

    def test_tls_verification_flag(self, monkeypatch):
        monkeypatch.setenv("R2_VERIFY_SSL", "false")

        settings = Settings(_env_file=None)

        assert settings.r2_verify_ssl is False
        assert settings.storage_config().verify is False

    def test_storage_config_carries_client_options(self):
        settings = Settings(
            _env_file=None,
            r2_endpoint_url="https://store.example.com",
            r2_access_key_id="key",
            r2_secret_access_key="secret",
            r2_bucket_name="downloads",
            r2_ca_bundle="/etc/ssl/store.pem",
            r2_max_pool_connections=8,
        )

        config = settings.storage_config()

        assert config.endpoint_url == "https://store.example.com"
        assert config.bucket_name == "downloads"
        assert config.verify == "/etc/ssl/store.pem"
        assert config.max_pool_connections == 8
        assert config.region == "auto"

    def test_api_keys_list(self):
        settings = Settings(_env_file=None, api_keys="a, b,,c")

        assert settings.api_keys_list == ["a", "b", "c"]

    def test_no_api_keys_by_default(self, monkeypatch):
        monkeypatch.delenv("API_KEYS", raising=False)

        settings = Settings(_env_file=None)

        assert settings.api_keys_list == []

    def test_downloads_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOWNLOADS_DIR", str(tmp_path))

        settings = Settings(_env_file=None)

        assert settings.downloads_dir == tmp_path
