from datetime import timedelta

import pytest

from api import create_app
from api.config import DevelopmentConfig, ProductionConfig, TestingConfig, get_config
from utils.security import TokenKind

from conftest import login, parse_set_cookies


@pytest.mark.parametrize(
    "name, expected",
    [
        ("prod", ProductionConfig),
        ("production", ProductionConfig),
        ("testing", TestingConfig),
        ("dev", DevelopmentConfig),
        ("anything-else", DevelopmentConfig),
    ],
)
def test_get_config(name, expected):
    assert get_config(name) is expected


def test_default_lifetimes():
    assert TestingConfig.ACCESS_TOKEN_EXPIRES == timedelta(seconds=1800)
    assert TestingConfig.REFRESH_TOKEN_EXPIRES == timedelta(seconds=2_592_000)


def test_components_registered(app):
    controller = app.extensions["rotation_controller"]

    assert controller.store.storage is app.extensions["storage"]
    assert controller.policy.lifetimes[TokenKind.ACCESS] == timedelta(seconds=1800)


def test_lifetime_overrides_reach_tokens(tmp_path):
    app = create_app(
        "testing",
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'short.db'}",
            "ACCESS_TOKEN_EXPIRES": timedelta(seconds=60),
        },
    )
    runner = app.test_cli_runner()
    runner.invoke(args=["create-user", "--id", "1"])
    client = app.test_client(use_cookies=False)

    res = login(client, 1)

    claims = app.extensions["rotation_controller"].codec.decode(
        parse_set_cookies(res)["access_token"]["value"], TokenKind.ACCESS
    )
    assert claims.exp - claims.iat == 60
    app.extensions["storage"].dispose()


def test_shared_secrets_refused(tmp_path):
    with pytest.raises(ValueError):
        create_app(
            "testing",
            {
                "DATABASE_URL": f"sqlite:///{tmp_path / 'x.db'}",
                "ACCESS_TOKEN_SECRET": "same",
                "REFRESH_TOKEN_SECRET": "same",
            },
        )


def test_missing_secret_is_internal_error(tmp_path):
    app = create_app(
        "testing",
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'nosecret.db'}",
            "REFRESH_TOKEN_SECRET": None,
        },
    )
    app.test_cli_runner().invoke(args=["create-user", "--id", "1"])
    client = app.test_client(use_cookies=False)

    res = login(client, 1)

    assert res.status_code == 500
    assert res.headers.getlist("Set-Cookie") == []
    app.extensions["storage"].dispose()


class TestCli:

    def test_create_user(self, app, client):
        result = app.test_cli_runner().invoke(args=["create-user", "--id", "5", "--first-name", "Grace"])

        assert result.exit_code == 0
        assert "created user 5" in result.output
        assert login(client, 5).status_code == 200

    def test_create_existing_user(self, app):
        result = app.test_cli_runner().invoke(args=["create-user", "--id", "1"])

        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_init_db(self, app):
        result = app.test_cli_runner().invoke(args=["init-db"])

        assert result.exit_code == 0
