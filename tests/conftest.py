import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dingtalk_alerter.config import Settings, get_settings  # noqa: E402

ENV_VARS = [
    "DINGTALK_TOKEN",
    "DINGTALK_SECRET",
    "DINGTALK_SIGNATURE",
    "DINGTALK_REQUIRE_SIGNATURE",
    "DINGTALK_WEBHOOK_URL",
    "DINGTALK_TIMEOUT",
    "ALERT_DISPLAY_NAME",
    "WEBSERVER_EXTERNAL_HOSTNAME",
    "WEBSERVER_HOSTNAME",
    "WEBSERVER_USE_SSL",
    "WEBSERVER_EXTERNAL_SSL_PORT",
    "WEBSERVER_SSL_PORT",
    "WEBSERVER_EXTERNAL_PORT",
    "WEBSERVER_PORT",
    "ALERT_TIMEZONE",
    "ALERT_DEFAULT_PROJECT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_settings(**env) -> Settings:
    values = {"DINGTALK_TOKEN": "tok", "DINGTALK_SECRET": "SECtest"}
    values.update(env)
    values = {k: v for k, v in values.items() if v is not None}
    return Settings(_env_file=None, **values)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = {"errcode": 0, "errmsg": "ok"} if payload is None else payload
        self.text = text if text is not None else str(self._payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def captured_posts(monkeypatch):
    posts = []

    def fake_post(url, data=None, headers=None, timeout=None):
        posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return FakeResponse()

    monkeypatch.setattr("dingtalk_alerter.sender.requests.post", fake_post)
    return posts
