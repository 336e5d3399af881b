import re
import time
import hmac
import struct
import base64
import binascii
from hashlib import sha1
from typing import Callable, Optional, Union

from logger import logger
from .confirmation import ActionTag
from .exceptions import InvalidSecretError


CLIENT_MARKER = "android"


def _decode_secret(secret: str) -> bytes:
    """Декодирует секрет из base64 или hex (40 символов)"""
    if not secret:
        raise InvalidSecretError("identity_secret is empty")

    if re.fullmatch(r"[0-9a-fA-F]{40}", secret):
        return bytes.fromhex(secret)

    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecretError(f"Cannot decode identity_secret: {e}") from e


def get_device_id(steam_id, salt: str = "") -> str:
    """Генерирует стабильный device id вида android:xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"""
    digest = sha1(f"{steam_id}{salt}".encode("utf-8")).hexdigest()
    return "android:{}-{}-{}-{}-{}".format(
        digest[:8], digest[8:12], digest[12:16], digest[16:20], digest[20:32]
    )


def get_time(offset: int = 0, clock: Callable[[], float] = time.time) -> int:
    """Текущее время Steam в секундах с учётом смещения"""
    return int(clock()) + int(offset)


def generate_confirmation_key(identity_secret: str, timestamp: int, tag: Union[ActionTag, str]) -> str:
    """Генерирует ключ подтверждения для пары (время, тег)"""
    secret_bytes = _decode_secret(identity_secret)
    tag = ActionTag(tag).value if isinstance(tag, ActionTag) else str(tag)

    # Steam учитывает не больше 32 байт тега
    data = struct.pack(">Q", int(timestamp)) + tag.encode("utf-8")[:32]
    _hmac = hmac.new(secret_bytes, data, sha1).digest()
    return base64.b64encode(_hmac).decode("ascii")


class ConfirmationTokenGenerator:
    """
    Параметры авторизации мобильных подтверждений.

    Device id вычисляется один раз и кэшируется; ключ и время
    генерируются заново для каждого запроса.
    """

    def __init__(
        self,
        steam_id,
        identity_secret: str,
        device_id: Optional[str] = None,
        time_offset: int = 0,
        device_salt: str = "",
        clock: Callable[[], float] = time.time,
    ):
        # Проверяем секрет сразу, а не на первом запросе
        _decode_secret(identity_secret)

        self.steam_id = str(steam_id)
        self.identity_secret = identity_secret
        self.time_offset = int(time_offset)
        self.clock = clock
        self.device_id = device_id or get_device_id(self.steam_id, device_salt)
        logger.debug(f"Token generator ready for {self.steam_id}", extra_info=f"Device: {self.device_id}")

    def current_time(self) -> int:
        return get_time(self.time_offset, self.clock)

    def query_params(self, tag: Union[ActionTag, str]) -> dict:
        """Возвращает свежие p/a/k/t/m/tag для одного запроса"""
        tag = ActionTag(tag)
        timestamp = self.current_time()
        return {
            "p": self.device_id,
            "a": self.steam_id,
            "k": generate_confirmation_key(self.identity_secret, timestamp, tag),
            "t": timestamp,
            "m": CLIENT_MARKER,
            "tag": tag.value,
        }
