# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for configuration loading and logging setup.
"""

import logging
from pathlib import Path

import pytest
import structlog

from vial.logging import _build_processors, _cloudwatch_processor, configure_structlog, get_log_format, get_log_level
from vial.utils.config import Config, load_config

CONFIG_ENV_VARS = [
    "STORAGE_PATH",
    "DATABASE_PATH",
    "TIMEZONE",
    "JWT_SECRET_KEY",
    "SESSION_DAYS",
    "REMEMBER_ME_DAYS",
    "ADMIN_EMAILS",
    "CRON_SECRET",
    "MEDIA_BACKEND",
    "S3_BUCKET",
    "MAX_AUDIO_MB",
    "CORS_ORIGINS",
    "SMTP_HOST",
    "MAIL_FROM",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv registers each key with monkeypatch so load_dotenv() writes get undone
    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "data"))
    return monkeypatch


class TestLoadConfig:
    def test_defaults(self, clean_env, tmp_path):
        config = load_config()

        assert config.storage_path == tmp_path / "data"
        assert config.database_path == str(tmp_path / "data" / "vial.db")
        assert config.timezone == "UTC"
        assert config.session_days == 7
        assert config.remember_me_days == 30
        assert config.media_backend == "local"
        assert config.max_audio_bytes == 200 * 1024 * 1024
        assert config.mail_enabled is False
        assert config.storage_path.is_dir()

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("ADMIN_EMAILS", "Ada@Example.com, grace@example.com ,")
        clean_env.setenv("TIMEZONE", "Europe/Berlin")
        clean_env.setenv("MAX_AUDIO_MB", "50")
        clean_env.setenv("CORS_ORIGINS", "https://vial.example.com,https://admin.vial.example.com")
        clean_env.setenv("SMTP_HOST", "smtp.example.com")
        clean_env.setenv("MAIL_FROM", "hello@example.com")

        config = load_config()

        assert config.admin_emails == ["ada@example.com", "grace@example.com"]
        assert config.timezone == "Europe/Berlin"
        assert config.max_audio_bytes == 50 * 1024 * 1024
        assert config.cors_origins == ["https://vial.example.com", "https://admin.vial.example.com"]
        assert config.mail_enabled is True

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("CRON_SECRET=from-file\n")

        assert load_config(str(env_file)).cron_secret == "from-file"

    def test_unknown_media_backend(self, clean_env):
        clean_env.setenv("MEDIA_BACKEND", "ftp")

        with pytest.raises(ValueError, match="MEDIA_BACKEND"):
            load_config()

    def test_s3_requires_bucket(self, clean_env):
        clean_env.setenv("MEDIA_BACKEND", "s3")

        with pytest.raises(ValueError, match="S3_BUCKET"):
            load_config()

    def test_media_path(self, tmp_path):
        config = Config(storage_path=tmp_path, database_path=str(tmp_path / "db" / "vial.db"))

        assert config.media_path == tmp_path / "media"
        assert Path(config.database_path).parent.is_dir()


class TestLogging:
    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

        monkeypatch.setenv("LOG_LEVEL", "nonsense")
        assert get_log_level() == logging.INFO

    @pytest.mark.parametrize("value,expected", [("json", "json"), ("CloudWatch", "cloudwatch"), ("xml", "json")])
    def test_log_format(self, monkeypatch, value, expected):
        monkeypatch.setenv("LOG_FORMAT", value)

        assert get_log_format() == expected

    def test_cloudwatch_field_names(self):
        event = _cloudwatch_processor(None, "info", {"event": "Episode published", "timestamp": "t", "level": "info"})

        assert event == {"message": "Episode published", "@timestamp": "t", "level": "INFO"}

    def test_processor_chains_end_in_a_renderer(self):
        for log_format in ("console", "json", "cloudwatch"):
            processors = _build_processors(log_format)
            assert processors[0] is structlog.contextvars.merge_contextvars
            assert callable(processors[-1])

    def test_configure_with_log_file(self, monkeypatch, tmp_path):
        log_file = tmp_path / "logs" / "vial.log"
        monkeypatch.setenv("LOG_FILE", str(log_file))
        monkeypatch.setenv("LOG_FORMAT", "json")
        root = logging.getLogger()
        handlers_before = list(root.handlers)

        try:
            configure_structlog()
            assert log_file.parent.is_dir()
            assert len(root.handlers) == len(handlers_before) + 2
        finally:
            for handler in root.handlers[len(handlers_before):]:
                root.removeHandler(handler)
                handler.close()
            structlog.reset_defaults()
