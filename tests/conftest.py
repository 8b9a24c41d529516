"""Pytest configuration and shared fixtures."""

import itertools
import json
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

# Add project root to path for all tests
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from wikigate.client import MediaWikiClient  # noqa: E402

API_URL = "https://wiki.example.com/api.php"
REST_URL = "https://wiki.example.com/rest.php/"
USERNAME = "TestUser"
PASSWORD = "TestPassword123"


def make_response(data, status=200, content_type="application/json", url=API_URL):
    """Build a real requests.Response carrying `data`."""
    response = requests.Response()
    response.status_code = status
    response.headers["Content-Type"] = content_type
    if isinstance(data, (dict, list)):
        response._content = json.dumps(data).encode("utf-8")
    else:
        response._content = str(data).encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    return response


class FakeWiki:
    """
    In-memory stand-in for a MediaWiki server.

    Plug into a client with:
        api.gateway.session.get = Mock(side_effect=wiki.get)
        api.gateway.session.post = Mock(side_effect=wiki.post)
    """

    def __init__(self):
        self.counter = itertools.count(1)
        self.tokens = {}
        self.logged_in = None
        self.badtoken_remaining = 0
        self.always_badtoken = False
        self.token_fetches = 0
        self.requests = []

    # server-side switches

    def drop_session(self):
        self.logged_in = None

    def issue_token(self, kind):
        token = f"{kind}-{next(self.counter)}+\\"
        self.tokens[kind] = token
        return token

    # transport entry points

    def get(self, url, params=None, **kwargs):
        params = dict(params or {})
        self.requests.append(("GET", params))

        if params.get("action") == "query" and params.get("meta") == "tokens":
            self.token_fetches += 1
            kinds = params.get("type", "csrf").split("|")
            tokens = {f"{kind}token": self.issue_token(kind) for kind in kinds}
            return make_response({"batchcomplete": True, "query": {"tokens": tokens}})

        assert_error = self._check_assert_user(params)
        if assert_error:
            return make_response(assert_error)

        if params.get("meta") == "userinfo":
            name = self.logged_in or "127.0.0.1"
            return make_response({
                "query": {"userinfo": {"id": 1 if self.logged_in else 0, "name": name, "groups": ["*"]}}
            })
        if params.get("meta") == "allmessages":
            names = params.get("ammessages", "").split("|")
            return make_response({
                "query": {
                    "allmessages": [
                        {"name": n, "missing": True} if n == "nonexistent" else {"name": n, "content": f"<{n}>"}
                        for n in names
                    ]
                }
            })
        return make_response({"batchcomplete": True, "query": {}})

    def post(self, url, params=None, data=None, files=None, **kwargs):
        body = {**(params or {}), **(data or {})}
        self.requests.append(("POST", body))
        action = body.get("action")

        if action == "login":
            return make_response(self._login(body))

        assert_error = self._check_assert_user(body)
        if assert_error:
            return make_response(assert_error)

        if action == "parse":
            return make_response({"parse": {"title": body.get("title", "API"), "text": f"<p>{body['text']}</p>"}})

        if "token" in body:
            if self.always_badtoken or self.badtoken_remaining > 0 or body["token"] != self.tokens.get("csrf"):
                if self.badtoken_remaining > 0:
                    self.badtoken_remaining -= 1
                return make_response({
                    "errors": [{"code": "badtoken", "text": "Invalid CSRF token.", "module": "main"}]
                })

        if action == "protect":
            return make_response({
                "errors": [{"code": "permissiondenied", "text": "You don't have permission."}]
            })
        if action == "logout":
            self.logged_in = None
            return make_response({})
        if action == "boom":
            return make_response("<html>Internal error</html>", status=500, content_type="text/html")
        return make_response({action: {"result": "Success"}})

    def _login(self, body):
        if body.get("lgtoken") != self.tokens.get("login"):
            return {"login": {"result": "WrongToken"}}
        if body.get("lgname") == USERNAME and body.get("lgpassword") == PASSWORD:
            self.logged_in = USERNAME
            # csrf tokens are bound to the session
            self.tokens.pop("csrf", None)
            return {"login": {"result": "Success", "lguserid": 1, "lgusername": USERNAME}}
        return {"login": {"result": "Failed", "reason": {"code": "wrongpassword", "text": "Incorrect username or password"}}}

    def _check_assert_user(self, params):
        asserted = params.get("assertuser")
        if asserted is not None and asserted != self.logged_in:
            return {
                "errors": [{
                    "code": "assertnameduserfailed",
                    "text": f'You are no longer logged in as "{asserted}".',
                }]
            }
        return None


@pytest.fixture
def wiki():
    """A fresh fake wiki server."""
    return FakeWiki()


@pytest.fixture
def api(wiki):
    """MediaWikiClient wired to the fake wiki."""
    client = MediaWikiClient(API_URL)
    client.gateway.session.get = Mock(side_effect=wiki.get)
    client.gateway.session.post = Mock(side_effect=wiki.post)
    return client


@pytest.fixture
def temp_log_dir(tmp_path):
    """Provide a temporary directory for log files."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir
