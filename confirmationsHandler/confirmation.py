from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActionTag(str, Enum):
    """Тег действия: выбирает вариант ключа и семейство эндпоинтов"""
    CONF = "conf"
    DETAILS = "details"
    ALLOW = "allow"
    CANCEL = "cancel"


# Операции, которые можно отправить в ajaxop / multiajaxop
RESPONSE_OPERATIONS = (ActionTag.ALLOW, ActionTag.CANCEL)


class ConfirmationType:
    GENERIC = 1
    TRADE = 2
    MARKET = 3
    FEATURE_OPT_OUT = 4
    PHONE_NUMBER_CHANGE = 5
    ACCOUNT_RECOVERY = 6

    @staticmethod
    def get_name(type_id) -> str:
        names = {
            1: "Generic",
            2: "Trade",
            3: "Market",
            4: "FeatureOptOut",
            5: "PhoneNumberChange",
            6: "AccountRecovery"
        }
        try:
            return names.get(int(type_id), "Unknown")
        except (TypeError, ValueError):
            return "Unknown"


@dataclass(frozen=True)
class Confirmation:
    """Одно ожидающее подтверждение. Только значения, без поведения."""
    id: str
    type: Optional[str]
    key: str
    trade_id: Optional[str] = None
