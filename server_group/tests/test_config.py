import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from server_group.config import load_settings, parse_group_bundles


def test_defaults_without_environment():
    settings = load_settings({})

    assert settings.db_config == {
        "host": "127.0.0.1",
        "port": 5432,
        "dbname": "group_site",
        "user": "group_user",
        "password": "group_pass",
        "connect_timeout": 5,
    }
    assert settings.group_bundles == frozenset({("node", "group")})
    assert settings.session_cookie_name == "session"
    assert settings.session_cookie_secure is False
    assert settings.jwt_exp_minutes == 60 * 24 * 7
    assert settings.default_language == "en"
    assert settings.log_level == "INFO"


def test_environment_overrides():
    settings = load_settings(
        {
            "DB_PORT": "6543",
            "DB_CONNECT_TIMEOUT": "2.5",
            "SESSION_COOKIE_SECURE": "yes",
            "APP_BASE_URL": "https://groups.example.com/",
            "GROUP_BUNDLES": "node:group, node:club",
            "DEFAULT_LANGUAGE": "FR",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.db_port == 6543
    assert settings.db_connect_timeout == 3
    assert settings.session_cookie_secure is True
    assert settings.app_base_url == "https://groups.example.com"
    assert settings.group_bundles == frozenset({("node", "group"), ("node", "club")})
    assert settings.default_language == "fr"
    assert settings.log_level == "DEBUG"


def test_invalid_port_is_rejected():
    with pytest.raises(ValueError):
        load_settings({"DB_PORT": "not-a-port"})


def test_negative_connect_timeout_is_rejected():
    with pytest.raises(ValueError):
        load_settings({"DB_CONNECT_TIMEOUT": "-1"})


def test_malformed_group_bundle_is_rejected():
    with pytest.raises(ValueError):
        parse_group_bundles("group")


def test_empty_group_bundle_entries_are_ignored():
    assert parse_group_bundles("node:group,,") == frozenset({("node", "group")})
