import json
from typing import Optional, Sequence, Union
from urllib.parse import urlencode

from logger import logger
from .SteamGuard import ConfirmationTokenGenerator
from .confirmation import ActionTag, Confirmation, RESPONSE_OPERATIONS
from .exceptions import ResponseParseError
from .session_client import STEAM_BASE, CancellationToken, SessionHttpClient


def _operation(op: Union[ActionTag, str]) -> ActionTag:
    tag = ActionTag(op)
    if tag not in RESPONSE_OPERATIONS:
        raise ValueError(f"Unsupported confirmation operation: {tag.value}")
    return tag


def parse_success(body: str) -> bool:
    """Разбирает {"success": bool} из ответа ajaxop/multiajaxop"""
    try:
        result = json.loads(body)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Failed to parse body: {e}", body) from e

    if not isinstance(result, dict):
        raise ResponseParseError("Response body is not a JSON object", body)

    return bool(result.get("success"))


class ConfirmationResponder:
    """
    Отправляет allow/cancel для одного или нескольких подтверждений.

    Сам ничего не повторяет: повторы транспорта живут в SessionHttpClient,
    повтор при success=false решает вызывающий код.
    """

    def __init__(self, client: SessionHttpClient, tokens: ConfirmationTokenGenerator, base_url: str = STEAM_BASE):
        self.client = client
        self.tokens = tokens
        self.base_url = base_url

    def build_single_url(self, confirmation: Confirmation, op: Union[ActionTag, str]) -> str:
        tag = _operation(op)
        params = {"op": tag.value}
        params.update(self.tokens.query_params(tag))
        params["cid"] = confirmation.id
        params["ck"] = confirmation.key
        return f"{self.base_url}/mobileconf/ajaxop?{urlencode(params)}"

    def build_batch_form(self, confirmations: Sequence[Confirmation], op: Union[ActionTag, str]) -> dict:
        """Форма multiajaxop: cid[i] и ck[i] относятся к одному подтверждению"""
        tag = _operation(op)
        form = {"op": tag.value}
        form.update(self.tokens.query_params(tag))
        form["cid[]"] = [confirmation.id for confirmation in confirmations]
        form["ck[]"] = [confirmation.key for confirmation in confirmations]
        return form

    async def respond_single(
        self,
        confirmation: Confirmation,
        op: Union[ActionTag, str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        tag = _operation(op)

        def signed_url():
            return self.build_single_url(confirmation, tag)

        _, body = await self.client.send(signed_url, "GET", cancel_token=cancel_token)
        success = parse_success(body)
        logger.confirmation_responded(tag.value, [confirmation.id], success)
        return success

    async def respond_batch(
        self,
        confirmations: Sequence[Confirmation],
        op: Union[ActionTag, str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        tag = _operation(op)
        confirmations = list(confirmations)
        if not confirmations:
            raise ValueError("No confirmations to respond to")

        def signed_form():
            return self.build_batch_form(confirmations, tag)

        url = f"{self.base_url}/mobileconf/multiajaxop"
        _, body = await self.client.send(url, "POST", signed_form, cancel_token=cancel_token)
        success = parse_success(body)
        logger.confirmation_responded(tag.value, [c.id for c in confirmations], success)
        return success
