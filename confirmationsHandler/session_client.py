"""
HTTP-сессия мобильных подтверждений Steam.

Единственное место, где меняется состояние сессии (cookies, флаги
session_invalid / rate_limited) и где живёт политика повторов:

* сессия недействительна -> запрос не отправляется, ждём wait_time,
  пока владелец не передаст новые cookies через update_cookies();
* ошибка транспорта или статус не 200/429 -> сессия помечается
  недействительной, повтор того же запроса после обновления cookies;
* 429 -> флаг rate_limited (не сбрасывается), повтор через 3 * wait_time;
* 200 с пустым телом -> EmptyBodyError вызывающему коду.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qs, urlsplit

import requests

from logger import logger
from .exceptions import EmptyBodyError, RetryCancelledError

STEAM_BASE = "https://steamcommunity.com"
COOKIE_DOMAIN = "steamcommunity.com"

DEFAULT_HEADERS = {
    "accept": "text/javascript, text/html, application/xml, text/xml, */*",
    "user-agent": (
        "Mozilla/5.0 (Linux; U; Android 4.1.1; en-us; Google Nexus 4 - 4.1.1 - API 16 - 768x1280 "
        "Build/JRO03S) AppleWebKit/534.30 (KHTML, like Gecko) Version/4.0 Mobile Safari/534.30"
    ),
}

RATE_LIMIT_MULTIPLIER = 3

WebCookies = Union[str, Iterable[str], Mapping[str, str]]
TraceHook = Callable[[str, str, Optional[int], Optional[str]], None]


class SessionState(str, Enum):
    READY = "ready"
    AWAITING_SESSION = "awaiting_session"
    SENDING = "sending"
    BACKOFF = "backoff"


class CancellationToken:
    """Отмена запроса, который висит в цикле повторов"""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, url: str):
        if self._cancelled:
            raise RetryCancelledError(f"Request to {url} was cancelled")


def parse_web_cookies(web_cookies: WebCookies) -> List[Tuple[str, str]]:
    """Разбирает cookies из строк "name=value" (можно через ';') или словаря"""
    if isinstance(web_cookies, Mapping):
        return [(str(name), str(value)) for name, value in web_cookies.items()]

    if isinstance(web_cookies, str):
        web_cookies = [web_cookies]

    pairs = []
    for raw in web_cookies:
        for part in raw.split(";"):
            name, sep, value = part.strip().partition("=")
            if not sep or not name:
                continue
            pairs.append((name.strip(), value.strip()))
    return pairs


def loggable_url(url: str) -> str:
    """Путь запроса и tag без подписанных параметров (k, p, a, ck)"""
    parts = urlsplit(url)
    tag = parse_qs(parts.query).get("tag")
    return f"{parts.path}?tag={tag[0]}" if tag else parts.path


class SessionHttpClient:
    def __init__(
        self,
        web_cookies: Optional[WebCookies] = None,
        wait_time: float = 10.0,
        timeout: float = 30,
        on_needs_new_session: Optional[Callable[[], None]] = None,
        on_rate_limited: Optional[Callable[[], None]] = None,
        trace_hook: Optional[TraceHook] = None,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
        session: Optional[requests.Session] = None,
    ):
        self.wait_time = wait_time
        self.timeout = timeout
        self.state = SessionState.READY
        self.rate_limited = False
        self.session_invalid = False

        self._session = session or requests.Session()
        self._sleep = sleep
        self._trace_hook = trace_hook
        self._session_listeners: List[Callable[[], None]] = []
        self._rate_limit_listeners: List[Callable[[], None]] = []
        self._session_notified = False

        if on_needs_new_session:
            self.add_session_listener(on_needs_new_session)
        if on_rate_limited:
            self.add_rate_limit_listener(on_rate_limited)

        if web_cookies:
            self._set_cookies(web_cookies)

    def add_session_listener(self, callback: Callable[[], None]):
        self._session_listeners.append(callback)

    def add_rate_limit_listener(self, callback: Callable[[], None]):
        self._rate_limit_listeners.append(callback)

    @property
    def cookies(self):
        return self._session.cookies

    def update_cookies(self, web_cookies: WebCookies):
        """Принимает новые cookies и снимает флаг недействительной сессии"""
        self._set_cookies(web_cookies)
        self.session_invalid = False
        self._session_notified = False
        if self.state == SessionState.AWAITING_SESSION:
            self.state = SessionState.READY
        logger.session_restored()

    def _set_cookies(self, web_cookies: WebCookies):
        for name, value in parse_web_cookies(web_cookies):
            self._session.cookies.set(name, value, domain=COOKIE_DOMAIN, path="/")

    def invalidate_session(self, reason: str):
        """Помечает сессию недействительной; слушатели узнают об этом один раз"""
        self.session_invalid = True
        if self._session_notified:
            return

        self._session_notified = True
        logger.session_invalidated(reason)
        self._notify(self._session_listeners, "needs_new_session")

    def _notify(self, listeners: List[Callable[[], None]], event: str):
        for callback in list(listeners):
            try:
                callback()
            except Exception as e:
                # Ошибка слушателя не должна ломать цикл повторов
                logger.log_error("SessionHttpClient", f"{event} listener failed: {e}")

    def _trace(self, url: str, method: str, status: Optional[int], body: Optional[str]):
        if self._trace_hook is None:
            return
        try:
            self._trace_hook(url, method, status, body)
        except Exception as e:
            logger.log_error("SessionHttpClient", f"trace hook failed: {e}")

    async def _wait(self, delay: float, url: str, cancel_token: Optional[CancellationToken]):
        await self._sleep(delay)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(url)

    async def send(
        self,
        url: Union[str, Callable[[], str]],
        method: str = "GET",
        form=None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Tuple[int, str]:
        """
        Отправляет запрос и повторяет его до успеха.

        Ошибки транспорта, недействительная сессия и 429 не выходят наружу:
        запрос ждёт и повторяется. Наружу выходят только EmptyBodyError и
        RetryCancelledError.

        url и form можно передать функциями: они вызываются перед каждой
        попыткой, чтобы ключ подтверждения и время были свежими.
        """
        method = method.upper()
        description = loggable_url(url) if isinstance(url, str) else getattr(url, "__name__", "request")

        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(description)

            if self.session_invalid:
                self.state = SessionState.AWAITING_SESSION
                # Слушатели уже знают, если сессию пометили в этом же клиенте
                self.invalidate_session("waiting for new session before request")
                logger.debug(f"Waiting for new session before {method} {description}")
                await self._wait(self.wait_time, description, cancel_token)
                continue

            self.state = SessionState.SENDING
            request_url = url() if callable(url) else url
            request_form = form() if callable(form) else form
            description = loggable_url(request_url)
            try:
                response = await asyncio.to_thread(
                    self._session.request,
                    method,
                    request_url,
                    headers=DEFAULT_HEADERS,
                    data=request_form if method != "GET" else None,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                self._trace(request_url, method, None, None)
                self.state = SessionState.AWAITING_SESSION
                self.invalidate_session(f"{type(e).__name__} for {method} {description}")
                await self._wait(self.wait_time, description, cancel_token)
                continue

            status = response.status_code
            body = response.text
            self._trace(request_url, method, status, body)

            if status == 429:
                delay = self.wait_time * RATE_LIMIT_MULTIPLIER
                self.rate_limited = True
                self.state = SessionState.BACKOFF
                logger.rate_limited(delay)
                self._notify(self._rate_limit_listeners, "rate_limited")
                await self._wait(delay, description, cancel_token)
                continue

            if status != 200:
                self.state = SessionState.AWAITING_SESSION
                self.invalidate_session(f"HTTP {status} for {method} {description}")
                await self._wait(self.wait_time, description, cancel_token)
                continue

            self.state = SessionState.READY
            if not body:
                raise EmptyBodyError(description)

            logger.debug(f"{method} {description} -> {status}", extra_info=f"Body: {len(body)} chars")
            return status, body

    def close(self):
        self._session.close()
