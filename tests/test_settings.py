import pytest

from assuan import settings as settings_module
from assuan.settings import Settings, load_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in ("ASSUAN_LOG_LEVEL", "ASSUAN_LOG_FILE", "ASSUAN_PINENTRY_GREETING"):
        # recorded first so values load_dotenv puts into os.environ are undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setattr(settings_module, "SETTINGS", Settings())


def test_defaults_without_env_file(tmp_path):
    settings = load_settings(str(tmp_path / "missing.env"))
    assert settings.log_level == "INFO"
    assert settings.log_file is None
    assert settings.pinentry_greeting == ""


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("ASSUAN_LOG_LEVEL", "debug")
    monkeypatch.setenv("ASSUAN_LOG_FILE", str(tmp_path / "pinentry.log"))
    settings = load_settings(str(tmp_path / "missing.env"))
    assert settings.log_level == "DEBUG"
    assert settings.log_file == tmp_path / "pinentry.log"


def test_env_file_is_read(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("ASSUAN_PINENTRY_GREETING=hello from dotenv\nASSUAN_LOG_LEVEL=warning\n")
    monkeypatch.setenv("ASSUAN_LOG_LEVEL", "error")
    settings = load_settings(str(env_file))
    assert settings.pinentry_greeting == "hello from dotenv"
    assert settings.log_level == "ERROR"
