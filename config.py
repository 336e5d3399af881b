import os
import json
from dataclasses import dataclass, field
from typing import List, Optional

# Настройки по умолчанию, переопределяются переменными окружения
STEAM_ID = os.getenv("STEAM_ID", "")
IDENTITY_SECRET = os.getenv("IDENTITY_SECRET", "")
DEVICE_ID = os.getenv("DEVICE_ID") or None
STEAM_TIME_OFFSET = int(os.getenv("STEAM_TIME_OFFSET", "0"))
CONFIRMATIONS_WAIT_TIME_MS = int(os.getenv("CONFIRMATIONS_WAIT_TIME_MS", "10000"))
REQUESTS_TIMEOUT = float(os.getenv("REQUESTS_TIMEOUT", "30"))
MAFILE_PATH = os.getenv("MAFILE_PATH", "")
# Cookies через ';', например "sessionid=...; steamLoginSecure=..."
STEAM_WEB_COOKIES = os.getenv("STEAM_WEB_COOKIES", "")


@dataclass
class ConfirmationSettings:
    """Параметры клиента мобильных подтверждений"""
    steam_id: str
    identity_secret: str
    device_id: Optional[str] = None
    time_offset: int = 0
    wait_time_ms: int = 10000
    requests_timeout: float = 30
    web_cookies: List[str] = field(default_factory=list)

    @property
    def wait_time(self) -> float:
        return self.wait_time_ms / 1000

    @classmethod
    def from_env(cls) -> "ConfirmationSettings":
        if not STEAM_ID or not IDENTITY_SECRET:
            raise ValueError("STEAM_ID and IDENTITY_SECRET must be set")

        return cls(
            steam_id=STEAM_ID,
            identity_secret=IDENTITY_SECRET,
            device_id=DEVICE_ID,
            time_offset=STEAM_TIME_OFFSET,
            wait_time_ms=CONFIRMATIONS_WAIT_TIME_MS,
            requests_timeout=REQUESTS_TIMEOUT,
            web_cookies=[STEAM_WEB_COOKIES] if STEAM_WEB_COOKIES else [],
        )

    @classmethod
    def from_mafile(cls, mafile_path: Optional[str] = None, **overrides) -> "ConfirmationSettings":
        """Читает identity_secret, device_id, SteamID и cookies сессии из .maFile"""
        mafile_path = mafile_path or MAFILE_PATH
        with open(mafile_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if "identity_secret" not in data:
            raise ValueError("Missing required field in .maFile: identity_secret")

        session = data.get("Session") or {}
        if "SteamID" not in session:
            raise ValueError("Missing SteamID in Session data")

        web_cookies = []
        if session.get("SessionID"):
            web_cookies.append(f"sessionid={session['SessionID']}")
        if session.get("SteamLoginSecure"):
            web_cookies.append(f"steamLoginSecure={session['SteamLoginSecure']}")

        values = dict(
            steam_id=str(session["SteamID"]),
            identity_secret=data["identity_secret"],
            device_id=data.get("device_id") or None,
            time_offset=STEAM_TIME_OFFSET,
            wait_time_ms=CONFIRMATIONS_WAIT_TIME_MS,
            requests_timeout=REQUESTS_TIMEOUT,
            web_cookies=web_cookies,
        )
        values.update(overrides)
        return cls(**values)
