"""Tests for the REST client."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import REST_URL, make_response
from wikigate.errors import InvalidEndpointError, InvalidPathError, TransportError
from wikigate.rest import RestClient, normalize_rest_base_url, resolve_path


class TestNormalizeBaseURL:
    """Tests for normalize_rest_base_url."""

    def test_adds_trailing_slash(self):
        """The base URL should always end with a slash."""
        assert normalize_rest_base_url("https://wiki.example.com/w/rest.php") == \
            "https://wiki.example.com/w/rest.php/"

    def test_strips_query_and_fragment(self):
        """Query strings and fragments should be removed."""
        assert normalize_rest_base_url("https://wiki.example.com/rest.php/?x=1#top") == \
            "https://wiki.example.com/rest.php/"

    @pytest.mark.parametrize("url", [None, "", "/w/rest.php", "ftp://wiki.example.com/rest.php"])
    def test_rejects_non_absolute(self, url):
        """Relative or non-http URLs should be rejected."""
        with pytest.raises(InvalidEndpointError):
            normalize_rest_base_url(url)


class TestResolvePath:
    """Tests for resolve_path."""

    def test_substitutes_and_encodes(self):
        """Placeholders should be replaced with percent-encoded values."""
        assert resolve_path("/v1/page/{title}", {"title": "Main Page"}) == "/v1/page/Main%20Page"

    def test_encodes_slashes(self):
        """Slashes in values should be encoded too."""
        assert resolve_path("/v1/page/{title}/history", {"title": "A/B"}) == "/v1/page/A%2FB/history"

    def test_repeated_placeholder(self):
        """Every occurrence of a placeholder should be replaced."""
        assert resolve_path("/{a}/{a}", {"a": "x"}) == "/x/x"

    def test_unresolved_placeholder(self):
        """A leftover placeholder should raise InvalidPathError."""
        with pytest.raises(InvalidPathError) as excinfo:
            resolve_path("/v1/page/{title}/{rev}", {"title": "X"})
        assert "{rev}" in str(excinfo.value)

    def test_no_params(self):
        """Paths without placeholders should pass through."""
        assert resolve_path("/v1/search/page") == "/v1/search/page"


class TestRestClient:
    """Tests for RestClient requests."""

    def make_client(self, response):
        client = RestClient(REST_URL, default_headers={"Api-User-Agent": "tests"})
        client.session.request = Mock(return_value=response)
        return client

    def test_get_builds_url(self):
        """Relative paths should be joined below rest.php/."""
        client = self.make_client(make_response({"title": "Main Page"}))

        response = client.get("/v1/page/{title}", path_params={"title": "Main Page"}, params={"redirect": "no"})

        args, kwargs = client.session.request.call_args
        assert args == ("GET", "https://wiki.example.com/rest.php/v1/page/Main%20Page")
        assert kwargs["params"] == {"redirect": "no"}
        assert response.data == {"title": "Main Page"}

    def test_absolute_path_used_as_is(self):
        """Absolute URLs should not be joined to the base."""
        client = self.make_client(make_response({}))
        client.get("https://other.example.com/rest.php/v1/x")
        assert client.session.request.call_args[0][1] == "https://other.example.com/rest.php/v1/x"

    def test_post_sends_json(self):
        """post should send a JSON body."""
        client = self.make_client(make_response({"id": 1}, status=201))
        client.post("/v1/page", json={"title": "New", "source": "text"})
        args, kwargs = client.session.request.call_args
        assert args[0] == "POST"
        assert kwargs["json"] == {"title": "New", "source": "text"}

    @pytest.mark.parametrize("method", ["put", "patch", "delete"])
    def test_other_verbs(self, method):
        """put, patch and delete should use their HTTP method."""
        client = self.make_client(make_response({}))
        getattr(client, method)("/v1/page/X")
        assert client.session.request.call_args[0][0] == method.upper()

    def test_html_body_kept_as_text(self):
        """Non-JSON responses should be returned as text."""
        client = self.make_client(make_response("<html/>", content_type="text/html"))
        assert client.get("/v1/page/X/html").data == "<html/>"

    def test_non_2xx_raises(self):
        """Non-2xx responses should raise TransportError with the response."""
        client = self.make_client(make_response({"httpCode": 404}, status=404))
        with pytest.raises(TransportError) as excinfo:
            client.get("/v1/page/Missing")
        assert excinfo.value.status == 404
        assert excinfo.value.response.data == {"httpCode": 404}

    def test_network_error_wrapped(self):
        """Network failures should raise TransportError."""
        client = RestClient(REST_URL)
        client.session.request = Mock(side_effect=requests.ConnectionError("refused"))
        with pytest.raises(TransportError):
            client.get("/v1/page/X")

    def test_invalid_path_makes_no_request(self):
        """An unresolved placeholder should fail before any request."""
        client = self.make_client(make_response({}))
        with pytest.raises(InvalidPathError):
            client.get("/v1/page/{title}")
        client.session.request.assert_not_called()

    def test_default_headers(self):
        """Default headers should be set on the session."""
        client = RestClient(REST_URL, default_headers={"Api-User-Agent": "tests"})
        assert client.session.headers["Api-User-Agent"] == "tests"
