"""Tests for configuration settings."""
import logging
from pathlib import Path

import pytest

from config import Settings, get_settings


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Restore root logger handlers and level changed by configure_logging."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
    logging.getLogger("cloud_image_store").setLevel(logging.NOTSET)


class TestSettings:
    """Test Settings configuration."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings()

        # Application metadata
        assert settings.app_name == "Cloud Image Store"
        assert settings.app_version == "0.1.0"
        assert settings.environment == "local"
        assert settings.debug is False

        # Storage Configuration
        assert settings.storage_type == "memory"
        assert settings.gcs_bucket is None
        assert settings.gcs_project is None
        assert settings.not_found_policy == "raise"

        # Credential Configuration
        assert settings.gcs_account_id is None
        assert settings.gcs_key_dir == Path("keys")
        assert settings.gcs_key_name == "service-account.pem"
        assert settings.gcs_scope == "full_control"

        # Logging Configuration
        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.log_file is None

    def test_env_override(self, monkeypatch):
        """Test environment variable overrides."""
        monkeypatch.setenv("STORAGE_TYPE", "gcs")
        monkeypatch.setenv("GCS_BUCKET", "images-prod")
        monkeypatch.setenv("GCS_ACCOUNT_ID", "uploader@example.iam.gserviceaccount.com")
        monkeypatch.setenv("GCS_KEY_DIR", "/secrets")
        monkeypatch.setenv("GCS_SCOPE", "read_only")
        monkeypatch.setenv("NOT_FOUND_POLICY", "return_none")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.storage_type == "gcs"
        assert settings.gcs_bucket == "images-prod"
        assert settings.gcs_account_id == "uploader@example.iam.gserviceaccount.com"
        assert settings.gcs_key_dir == Path("/secrets")
        assert settings.gcs_scope == "read_only"
        assert settings.not_found_policy == "return_none"
        assert settings.log_level == "DEBUG"

    def test_key_dir_validator(self):
        """Test key directory validator."""
        settings = Settings(gcs_key_dir="custom/keys")
        assert isinstance(settings.gcs_key_dir, Path)
        assert settings.gcs_key_dir == Path("custom/keys")

    def test_gcs_key_path(self):
        """Test the key path combines directory and file name."""
        settings = Settings(gcs_key_dir="secrets", gcs_key_name="sa.json")
        assert settings.gcs_key_path == Path("secrets/sa.json")

    def test_log_level_numeric(self):
        """Test numeric log level property."""
        assert Settings(log_level="DEBUG").log_level_numeric == logging.DEBUG
        assert Settings(log_level="ERROR").log_level_numeric == logging.ERROR

    @pytest.mark.parametrize("field,value", [
        ("environment", "invalid"),
        ("storage_type", "s3"),
        ("gcs_scope", "owner"),
        ("not_found_policy", "ignore"),
    ])
    def test_invalid_literal_values(self, field, value):
        """Test values outside the allowed set raise errors."""
        with pytest.raises(ValueError):
            Settings(**{field: value})

    def test_configure_logging_console(self):
        """Test logging configuration with console output."""
        settings = Settings(log_level="INFO", log_json=False)
        settings.configure_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO

        stream_handlers = [h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) > 0
        assert stream_handlers[0].formatter._fmt == settings.log_format

    def test_configure_logging_json(self, capsys):
        """Test logging configuration with JSON output."""
        settings = Settings(log_level="INFO", log_json=True)
        settings.configure_logging()

        logging.getLogger("test_logger").info("Test JSON message")

        captured = capsys.readouterr()
        assert '"message": "Test JSON message"' in captured.out
        assert '"level": "INFO"' in captured.out
        assert '"logger": "test_logger"' in captured.out

    def test_configure_logging_file(self, tmp_path):
        """Test logging configuration with file output."""
        log_file = tmp_path / "logs" / "test.log"
        settings = Settings(log_level="INFO", log_file=log_file)
        settings.configure_logging()

        logging.getLogger("test_logger").info("Test file message")

        assert log_file.exists()
        assert "Test file message" in log_file.read_text()

    def test_configure_logging_debug_mode(self):
        """Test debug mode enables package debug logging."""
        Settings(debug=True).configure_logging()

        assert logging.getLogger("cloud_image_store").level == logging.DEBUG

    def test_get_settings_cached(self):
        """Test that get_settings returns cached instance."""
        assert get_settings() is get_settings()

    def test_env_file_loading(self, tmp_path, monkeypatch):
        """Test loading settings from .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text("""
STORAGE_TYPE=gcs
GCS_BUCKET=env-file-bucket
LOG_LEVEL=WARNING
""")
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.storage_type == "gcs"
        assert settings.gcs_bucket == "env-file-bucket"
        assert settings.log_level == "WARNING"
