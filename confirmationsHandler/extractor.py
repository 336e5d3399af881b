import re
from typing import List

from bs4 import BeautifulSoup

from logger import logger
from .confirmation import Confirmation
from .exceptions import MalformedDetailPageError


class ConfirmationExtractor:
    """Разбор страниц /mobileconf/conf и /mobileconf/details"""

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def parse_listing(self, markup: str) -> List[Confirmation]:
        """Все элементы с data-confid в порядке документа; пустой список не ошибка"""
        soup = BeautifulSoup(markup, self.parser)
        confirmations = []

        for element in soup.find_all(attrs={"data-confid": True}):
            confirmations.append(Confirmation(
                id=element.get("data-confid"),
                type=element.get("data-type"),
                key=element.get("data-key"),
                trade_id=element.get("data-creator"),
            ))

        logger.debug(f"Parsed {len(confirmations)} confirmations from listing")
        return confirmations

    def parse_trade_id(self, markup: str) -> str:
        """Достаёт числовой id трейд оффера из div.tradeoffer"""
        soup = BeautifulSoup(markup, self.parser)
        container = soup.select_one("div.tradeoffer")
        if container is None:
            raise MalformedDetailPageError("Trade offer container not found on details page")

        element_id = container.get("id") or ""
        match = re.search(r"\d+", element_id)
        if match is None:
            raise MalformedDetailPageError(f"Trade offer container has no numeric id: {element_id!r}")

        return match.group(0)
