#!/usr/bin/env python3
"""
Синхронизация времени с сервером Steam.
Смещение нужно для ключей подтверждений: ключ со старым временем Steam отклоняет.
"""

import time
from datetime import datetime
from typing import Optional

import requests

from logger import logger

QUERY_TIME_URL = "https://api.steampowered.com/ITwoFactorService/QueryTime/v0001"


def query_time_offset(session: Optional[requests.Session] = None, timeout: float = 30) -> int:
    """Получает разность времени между сервером Steam и локальным временем"""
    http = session or requests
    try:
        response = http.post(QUERY_TIME_URL, timeout=timeout)
        response.raise_for_status()
        server_time = int(response.json()["response"]["server_time"])
        offset = server_time - int(time.time())
        logger.debug(f"Steam server time offset: {offset} seconds")
        return offset
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Failed to get Steam server time: {str(e)}")
        return 0


def check_time_sync(session: Optional[requests.Session] = None) -> bool:
    """Проверяет синхронизацию времени с сервером Steam"""
    offset = query_time_offset(session)
    local_time = int(time.time())
    steam_time = local_time + offset

    logger.info(
        "🕐 Проверка синхронизации времени",
        extra_info=f"Steam: {datetime.fromtimestamp(steam_time)}, Local: {datetime.fromtimestamp(local_time)}, Diff: {offset}s"
    )

    if abs(offset) <= 30:
        logger.info("✅ Синхронизация времени в норме")
        return True
    elif abs(offset) <= 60:
        logger.warning("⚠️ Небольшое расхождение времени, но допустимое")
        return True
    else:
        logger.error("❌ Критическое расхождение времени, ключи подтверждений будут отклонены")
        return False


if __name__ == "__main__":
    raise SystemExit(0 if check_time_sync() else 1)
