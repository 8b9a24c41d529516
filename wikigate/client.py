"""
MediaWiki Action API client with token handling and session recovery.

Provides:
- Token cache with forced refresh on badtoken and bounded retries
- Login, logout, and automatic re-login when assertuser fails
- A few convenience reads (userinfo, messages, parse)

Usage:
    from wikigate import MediaWikiClient

    api = MediaWikiClient("https://wiki.example.com/api.php")
    api.login("Bot", "secret")
    api.post_with_edit_token({"action": "edit", "title": "Sandbox", "text": "hi"})
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from wikigate.classifier import ErrorKind, classify, error_for, exhaustion
from wikigate.config import ConfigLike, resolve_config
from wikigate.errors import (
    AssertUserFailedError,
    BadTokenError,
    LoginFailedError,
    MediaWikiApiError,
    MissingTokenError,
    TransportError,
    WikiGateError,
)
from wikigate.gateway import RequestGateway
from wikigate.params import normalize_param_value
from wikigate.response import ApiResponse
from wikigate.tokens import KindLike, TokenKind, TokenStore

DEFAULT_RELOGIN_ATTEMPTS = 3


@dataclass
class LoginSession:
    """Credentials kept in memory for auto re-login."""

    username: str
    password: str = field(repr=False)
    asserted_user: str
    relogin_attempts_left: int = DEFAULT_RELOGIN_ATTEMPTS


class MediaWikiClient:
    """MediaWiki Action API client."""

    def __init__(
        self,
        config_or_base_url: ConfigLike = None,
        default_headers: Optional[dict] = None,
        default_params: Optional[dict] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        **options: Any,
    ):
        """
        Initialize the client.

        Args:
            config_or_base_url: ClientConfig, dict of its fields, or the
                API endpoint URL (e.g., https://wiki.example.com/api.php)
            default_headers: Extra headers sent with every request
            default_params: Params merged into every request
            session: requests.Session to reuse (creates one if not provided)
            logger: Logger instance (creates one if not provided)
            **options: Any other ClientConfig field (timeout, delay, ...)
        """
        self.config = resolve_config(config_or_base_url, default_headers, default_params, **options)
        self.logger = logger or logging.getLogger(__name__)
        self.gateway = RequestGateway(self.config, session=session, logger=self.logger)
        self.tokens = TokenStore()
        self.login_session: Optional[LoginSession] = None

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def set_base_url(self, base_url: str) -> "MediaWikiClient":
        self.gateway.set_base_url(base_url)
        return self

    @property
    def cookies(self):
        return self.gateway.session.cookies

    @property
    def auto_relogin_enabled(self) -> bool:
        return self.login_session is not None

    # Raw requests

    def get(self, params: dict, **options: Any) -> ApiResponse:
        """GET with the assertuser/re-login hook applied."""
        params = dict(params)
        return self._send_with_recovery(params, lambda: self.gateway.get(params, **options))

    def post(self, body: dict, **options: Any) -> ApiResponse:
        """POST with the assertuser/re-login hook applied."""
        body = dict(body)
        return self._send_with_recovery(body, lambda: self.gateway.post(body, **options))

    # Tokens

    def fetch_tokens(self, kinds: Optional[list] = None) -> dict[str, str]:
        """
        Fetch fresh tokens and store them.

        Args:
            kinds: Token kinds to fetch (default: csrf)

        Returns:
            Snapshot of the whole token cache
        """
        kinds = [TokenKind(k) for k in (kinds or [TokenKind.CSRF])]
        response = self.get({
            "action": "query",
            "meta": "tokens",
            "type": [k.value for k in kinds],
        })
        self._raise_for_error(response)

        returned = {}
        if isinstance(response.data, dict) and isinstance(response.data.get("query"), dict):
            returned = response.data["query"].get("tokens") or {}
        if not isinstance(returned, dict):
            returned = {}
        for kind in kinds:
            if returned.get(kind.response_key):
                self.tokens.set(kind, returned[kind.response_key])
        self.logger.debug(f"Fetched tokens: {', '.join(k.value for k in kinds)}")
        return self.tokens.as_dict()

    def get_token(self, kind: KindLike = TokenKind.CSRF, force_refresh: bool = False) -> str:
        """
        Return a token, using the cache unless a refresh is forced.

        Raises:
            MissingTokenError: If the server did not return the token
        """
        kind = TokenKind(kind)
        if not force_refresh:
            cached = self.tokens.get(kind)
            if cached:
                return cached

        with self.tokens.lock(kind):
            if not force_refresh and self.tokens.get(kind):
                return self.tokens.get(kind)
            self.tokens.invalidate(kind)
            self.fetch_tokens([kind])

        token = self.tokens.get(kind)
        if not token:
            raise MissingTokenError(kind)
        return token

    def bad_token(self, kind: KindLike) -> None:
        """Drop a cached token so the next use refetches it."""
        self.tokens.invalidate(kind)
        self.logger.debug(f"Invalidated {TokenKind(kind)} token")

    def post_with_token(
        self,
        kind: KindLike,
        body: dict,
        token_param: str = "token",
        retry_limit: int = 3,
        force_refresh: bool = False,
    ) -> ApiResponse:
        """
        POST a token-gated request, refetching the token on badtoken.

        Args:
            kind: Token kind the action needs (csrf, login, ...)
            body: Action parameters
            token_param: Name of the token parameter (lgtoken for login)
            retry_limit: Total attempts; each badtoken consumes one
            force_refresh: Skip the cache on the first attempt

        Returns:
            The successful ApiResponse

        Raises:
            RetryExhaustedError: If every attempt came back badtoken
            MediaWikiApiError: For any other API error (never retried)
            TransportError: For network failures (never retried here)
        """
        kind = TokenKind(kind)
        last_error: Optional[BadTokenError] = None
        relogged_in = False

        while True:
            if retry_limit < 1:
                self.logger.warning(f"Giving up on {kind} token after repeated badtoken")
                raise error_for(exhaustion(kind), last_error)

            token = self.get_token(kind, force_refresh)
            request = {token_param: token, **body}
            self._add_assert_user(request)
            try:
                response = self.gateway.post(request)
                classification = classify(response)
            except MediaWikiApiError as e:
                # raised by the gateway when throw_on_api_error is set
                response = e
                classification = classify(e)

            if classification is None:
                return response

            if classification.kind is ErrorKind.ASSERT_USER_FAILED and not relogged_in:
                error = response if isinstance(response, Exception) else error_for(classification, response)
                if self._relogin(request, error):
                    # the old token belonged to the lost session
                    relogged_in = True
                    force_refresh = True
                    continue

            if classification.kind is ErrorKind.BAD_TOKEN:
                last_error = error_for(classification, response)
                self.bad_token(kind)
                retry_limit -= 1
                force_refresh = True
                self.logger.info(f"Bad {kind} token, refetching ({retry_limit} attempts left)")
                continue

            if isinstance(response, Exception):
                raise response
            raise error_for(classification, response)

    def post_with_edit_token(self, body: dict, **options: Any) -> ApiResponse:
        return self.post_with_token(TokenKind.CSRF, body, **options)

    # Convenience reads

    def get_user_info(self) -> Optional[dict]:
        """Fetch the current user's name, groups, rights and block info."""
        response = self.get({
            "action": "query",
            "meta": "userinfo",
            "uiprop": ["groups", "rights", "blockinfo"],
        })
        self._raise_for_error(response)
        return (self._json_body(response).get("query") or {}).get("userinfo")

    def get_messages(self, names: list[str], lang: str = "en", **params: Any) -> dict[str, str]:
        """
        Fetch interface messages.

        Returns:
            Dict of message name to content (missing messages are skipped)
        """
        response = self.get({
            "action": "query",
            "meta": "allmessages",
            "ammessages": names,
            "amlang": lang,
            **params,
        })
        self._raise_for_error(response)

        messages = {}
        for message in (self._json_body(response).get("query") or {}).get("allmessages") or []:
            if not message.get("missing"):
                messages[message["name"]] = message.get("content", message.get("*", ""))
        return messages

    def parse_wikitext(self, wikitext: str, title: Optional[str] = None, **params: Any) -> str:
        """Render wikitext to HTML with action=parse."""
        response = self.post({
            "action": "parse",
            "title": title,
            "text": wikitext,
            **params,
        })
        self._raise_for_error(response)
        text = (self._json_body(response).get("parse") or {}).get("text", "")
        if isinstance(text, dict):
            # formatversion=1
            text = text.get("*", "")
        return text

    def _raise_for_error(self, response: ApiResponse) -> None:
        classification = classify(response)
        if classification is not None:
            raise error_for(classification, response)

    def _json_body(self, response: ApiResponse) -> dict:
        if not isinstance(response.data, dict):
            raise TransportError(
                "Unexpected non-JSON body from the API",
                status=response.status,
                response=response,
            )
        return response.data

    # Login

    def login(
        self,
        username: str,
        password: str,
        params: Optional[dict] = None,
        auto_relogin: bool = True,
        max_relogin_attempts: int = DEFAULT_RELOGIN_ATTEMPTS,
        retry_limit: int = 3,
        force_refresh: bool = True,
    ) -> dict:
        """
        Log in with a bot password or main account credentials.

        Args:
            username: lgname
            password: lgpassword (kept in memory only for auto re-login)
            params: Extra action=login params
            auto_relogin: Re-login automatically when assertuser fails
            max_relogin_attempts: Re-logins allowed over the client's lifetime
            retry_limit: Bad login token retries
            force_refresh: Fetch a fresh login token first

        Returns:
            The `login` object from the response (result, lgusername, ...)

        Raises:
            LoginFailedError: If the result is anything other than Success
        """
        result = self._do_login(username, password, params, retry_limit, force_refresh)

        if auto_relogin:
            if not isinstance(max_relogin_attempts, int) or max_relogin_attempts < 0:
                max_relogin_attempts = DEFAULT_RELOGIN_ATTEMPTS
            self.login_session = LoginSession(
                username=username,
                password=password,
                asserted_user=result.get("lgusername") or username,
                relogin_attempts_left=max_relogin_attempts,
            )
        else:
            self.login_session = None

        self.logger.info(f"Logged in as {result.get('lgusername') or username}")
        return result

    def _do_login(
        self,
        username: str,
        password: str,
        params: Optional[dict] = None,
        retry_limit: int = 3,
        force_refresh: bool = True,
    ) -> dict:
        response = self.post_with_token(
            TokenKind.LOGIN,
            {"action": "login", "lgname": username, "lgpassword": password, **(params or {})},
            token_param="lgtoken",
            retry_limit=retry_limit,
            force_refresh=force_refresh,
        )
        data = response.data if isinstance(response.data, dict) else {}
        login = data.get("login") or {}

        if login.get("result") != "Success":
            reason = login.get("reason")
            if isinstance(reason, dict):
                reason = reason.get("text") or reason.get("code")
            raise LoginFailedError(reason or "", result=login.get("result"), data=data)
        return login

    def logout(self) -> None:
        """Forget credentials and tokens; tell the server on a best-effort basis."""
        self.login_session = None
        try:
            self.post_with_token(TokenKind.CSRF, {"action": "logout"})
        except WikiGateError as e:
            self.logger.warning(f"Ignoring logout failure: {e}")
        self.tokens.clear()
        self.cookies.clear()

    # Auto re-login

    def _is_login_request(self, params: dict) -> bool:
        if params.get("action") == "login":
            return True
        if params.get("action") != "query":
            return False
        meta = str(normalize_param_value(params.get("meta")) or "").split("|")
        types = str(normalize_param_value(params.get("type")) or "").split("|")
        return "tokens" in meta and TokenKind.LOGIN.value in types

    def _add_assert_user(self, params: dict) -> None:
        if self.login_session is None or self._is_login_request(params):
            return
        if params.get("assertuser") is None:
            params["assertuser"] = self.login_session.asserted_user

    def _send_with_recovery(self, params: dict, send: Callable[[], ApiResponse]) -> ApiResponse:
        self._add_assert_user(params)
        try:
            response = send()
        except AssertUserFailedError as e:
            # raised by the gateway when throw_on_api_error is set
            if not self._relogin(params, e):
                raise
            return send()

        classification = classify(response)
        if classification is None or classification.kind is not ErrorKind.ASSERT_USER_FAILED:
            return response
        if not self._relogin(params, error_for(classification, response)):
            return response
        return send()

    def _relogin(self, params: dict, original_error: Exception) -> bool:
        """
        Re-login once for a request whose assertuser check failed.

        Returns:
            True if the caller should retry the request, False if recovery
            does not apply (no session, no assertuser, budget spent)

        Raises:
            AssertUserFailedError: The original error, if re-login fails
        """
        session = self.login_session
        if session is None or params.get("assertuser") is None:
            return False
        if self._is_login_request(params):
            return False
        if session.relogin_attempts_left <= 0:
            self.logger.warning("Session lost and no re-login attempts left")
            return False

        previous_user = session.asserted_user
        session.relogin_attempts_left -= 1
        self.logger.info(
            f"Session lost for {previous_user}, re-logging in "
            f"({session.relogin_attempts_left} attempts left)"
        )
        try:
            self.tokens.clear()
            result = self._do_login(session.username, session.password)
        except WikiGateError as e:
            self.logger.warning(f"Re-login failed: {e}")
            raise original_error from e

        session.asserted_user = result.get("lgusername") or session.username
        if params.get("assertuser") == previous_user:
            params["assertuser"] = session.asserted_user
        return True
