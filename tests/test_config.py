"""Tests for settings parsing and directory loading."""
import json
import logging

import pytest
from pydantic import ValidationError

from marketplace.config import EmailSettings, Settings
from marketplace.directory import DirectoryError, load_directory
from marketplace.logging_config import JsonFormatter, build_formatter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("SEND_EMAIL", "EMAIL_ENABLED", "EMAIL_USER", "EMAIL_PASSWORD", "PORT", "DIRECTORY_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_email_disabled_by_default():
    assert Settings().email.enabled is False


def test_send_email_flag_enables_live_mode(monkeypatch):
    monkeypatch.setenv("SEND_EMAIL", "true")
    monkeypatch.setenv("EMAIL_USER", "market@pbf.test")
    monkeypatch.setenv("EMAIL_PASSWORD", "app-password")

    email = EmailSettings()

    assert email.enabled is True
    assert email.from_address == "market@pbf.test"
    assert email.password.get_secret_value() == "app-password"
    assert "app-password" not in repr(email)


def test_live_mode_requires_credentials(monkeypatch):
    monkeypatch.setenv("SEND_EMAIL", "true")
    with pytest.raises(ValidationError):
        EmailSettings()


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    assert Settings().port == 8080


def test_builtin_directory_has_one_potato_and_two_tomato_growers():
    directory = load_directory()
    assert [s.offering for s in directory] == ["potato", "tomato", "tomato"]


def test_directory_from_file(tmp_path):
    path = tmp_path / "farmers.json"
    path.write_text(json.dumps([
        {"name": "Ana", "email": "ana@farms.test", "product": "onion"},
    ]))

    directory = load_directory(path)

    [supplier] = directory.all()
    assert supplier.name == "Ana"
    assert supplier.contact_address == "ana@farms.test"
    assert supplier.offering == "onion"


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"name": "Ana"}),
    json.dumps([{"name": "Ana", "email": "ana@farms.test"}]),
    json.dumps([{"name": "Ana", "email": "ana@farms.test", "product": "  "}]),
])
def test_malformed_directory_file_is_rejected(tmp_path, content):
    path = tmp_path / "farmers.json"
    path.write_text(content)
    with pytest.raises(DirectoryError):
        load_directory(path)


def test_json_formatter_renders_one_line():
    record = logging.LogRecord(
        name="marketplace.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="stored requirement %s",
        args=(3,),
        exc_info=None,
    )

    formatter = build_formatter("json")
    line = formatter.format(record)

    assert isinstance(formatter, JsonFormatter)
    assert "\n" not in line
    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "marketplace.test"
    assert payload["message"] == "stored requirement 3"
    assert not isinstance(build_formatter("text"), JsonFormatter)
