#!/usr/bin/env python3
"""
Клиент мобильных подтверждений Steam.

Собирает вместе генератор ключей, HTTP-сессию, разбор страниц и отправку
ответов. Все методы асинхронные: сетевые сбои и 429 не выходят наружу,
запрос ждёт и повторяется, а владелец получает сигнал needs_new_session.
"""

import asyncio
import dataclasses
from typing import Awaitable, Callable, List, Optional, Sequence, Union
from urllib.parse import urlencode

import requests

from config import ConfirmationSettings
from logger import logger
from .SteamGuard import ConfirmationTokenGenerator
from .confirmation import ActionTag, Confirmation, ConfirmationType
from .extractor import ConfirmationExtractor
from .responder import ConfirmationResponder
from .session_client import STEAM_BASE, CancellationToken, SessionHttpClient, TraceHook, WebCookies
from .time_sync import query_time_offset

ConfirmationBatch = Union[Confirmation, Sequence[Confirmation]]


class MobileConfirmations:
    """Список, детали и ответы на мобильные подтверждения одного аккаунта"""

    def __init__(
        self,
        settings: Optional[ConfirmationSettings] = None,
        on_needs_new_session: Optional[Callable[[], None]] = None,
        on_rate_limited: Optional[Callable[[], None]] = None,
        trace_hook: Optional[TraceHook] = None,
        retry_on_failure: bool = True,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], float]] = None,
        **settings_kwargs,
    ):
        if settings is None:
            # Ключевые аргументы: поля ConfirmationSettings
            settings = ConfirmationSettings(**settings_kwargs)
        elif settings_kwargs:
            settings = dataclasses.replace(settings, **settings_kwargs)

        self.settings = settings
        self.retry_on_failure = retry_on_failure
        self._sleep = sleep

        token_kwargs = {"clock": clock} if clock is not None else {}
        self.tokens = ConfirmationTokenGenerator(
            settings.steam_id,
            settings.identity_secret,
            device_id=settings.device_id,
            time_offset=settings.time_offset,
            **token_kwargs,
        )
        self.client = SessionHttpClient(
            web_cookies=settings.web_cookies,
            wait_time=settings.wait_time,
            timeout=settings.requests_timeout,
            on_needs_new_session=on_needs_new_session,
            on_rate_limited=on_rate_limited,
            trace_hook=trace_hook,
            sleep=sleep,
            session=session,
        )
        self.extractor = ConfirmationExtractor()
        self.responder = ConfirmationResponder(self.client, self.tokens)

        logger.info(
            f"Mobile confirmations client initialized for {settings.steam_id}",
            extra_info=f"Device: {self.tokens.device_id}, Offset: {settings.time_offset}s"
        )

    @property
    def device_id(self) -> str:
        return self.tokens.device_id

    @property
    def needs_new_session(self) -> bool:
        return self.client.session_invalid

    @property
    def rate_limited(self) -> bool:
        return self.client.rate_limited

    def update_cookies(self, web_cookies: WebCookies):
        """Обновляет cookies после истечения сессии"""
        self.client.update_cookies(web_cookies)

    async def sync_time(self) -> int:
        """Запрашивает смещение времени у Steam и применяет его к ключам"""
        offset = await asyncio.to_thread(query_time_offset, None, self.settings.requests_timeout)
        self.tokens.time_offset = offset
        return offset

    def _query_url(self, path: str, tag: ActionTag) -> Callable[[], str]:
        def signed_url():
            return f"{STEAM_BASE}{path}?{urlencode(self.tokens.query_params(tag))}"
        return signed_url

    async def fetch_confirmations(self, cancel_token: Optional[CancellationToken] = None) -> List[Confirmation]:
        """Загружает все ожидающие подтверждения"""
        _, body = await self.client.send(
            self._query_url("/mobileconf/conf", ActionTag.CONF), "GET", cancel_token=cancel_token
        )
        confirmations = self.extractor.parse_listing(body)
        for confirmation in confirmations:
            logger.debug(f"Confirmation {confirmation.id}: {ConfirmationType.get_name(confirmation.type)}")
        logger.confirmations_fetched(len(confirmations))
        return confirmations

    async def get_confirmation_trade_id(
        self,
        confirmation: Confirmation,
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """Получает id трейд оффера со страницы деталей подтверждения"""
        _, body = await self.client.send(
            self._query_url(f"/mobileconf/details/{confirmation.id}", ActionTag.DETAILS),
            "GET",
            cancel_token=cancel_token,
        )
        return self.extractor.parse_trade_id(body)

    async def attach_trade_id(
        self,
        confirmation: Confirmation,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Confirmation:
        """Копия подтверждения с trade_id со страницы деталей"""
        trade_id = await self.get_confirmation_trade_id(confirmation, cancel_token)
        return dataclasses.replace(confirmation, trade_id=trade_id)

    async def _respond(
        self,
        confirmation: ConfirmationBatch,
        op: ActionTag,
        cancel_token: Optional[CancellationToken],
    ) -> bool:
        if isinstance(confirmation, Confirmation):
            respond, target = self.responder.respond_single, confirmation
        else:
            respond, target = self.responder.respond_batch, list(confirmation)

        async def send():
            return await respond(target, op, cancel_token)

        if await send():
            return True

        if not self.retry_on_failure:
            return False

        # success=false: один повтор после паузы, дальше решает вызывающий код
        logger.warning(f"Failed to {op.value} confirmation first time, retrying once")
        await self._sleep(self.client.wait_time)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(op.value)
        return await send()

    async def accept_confirmation(
        self,
        confirmation: ConfirmationBatch,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        """Подтверждает одно подтверждение или список (все разом)"""
        return await self._respond(confirmation, ActionTag.ALLOW, cancel_token)

    async def deny_confirmation(
        self,
        confirmation: ConfirmationBatch,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        """Отклоняет одно подтверждение или список (все разом)"""
        return await self._respond(confirmation, ActionTag.CANCEL, cancel_token)

    async def accept_all_confirmations(self, cancel_token: Optional[CancellationToken] = None) -> List[Confirmation]:
        """Подтверждает всё, что сейчас висит; возвращает подтверждённые"""
        confirmations = await self.fetch_confirmations(cancel_token)
        if not confirmations:
            return []

        if await self.accept_confirmation(confirmations, cancel_token):
            return confirmations
        return []

    def close(self):
        self.client.close()
