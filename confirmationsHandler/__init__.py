"""
Клиент мобильных подтверждений Steam
Ключи подтверждений, HTTP-сессия с повторами, разбор и ответы на подтверждения
"""

from .confirmation import ActionTag, Confirmation, ConfirmationType
from .exceptions import (
    ConfirmationsError,
    EmptyBodyError,
    InvalidSecretError,
    MalformedDetailPageError,
    ResponseParseError,
    RetryCancelledError,
)
from .SteamGuard import ConfirmationTokenGenerator, generate_confirmation_key, get_device_id, get_time
from .session_client import CancellationToken, SessionHttpClient, SessionState
from .extractor import ConfirmationExtractor
from .responder import ConfirmationResponder
from .mobile_confirmations import MobileConfirmations

__all__ = [
    'ActionTag',
    'Confirmation',
    'ConfirmationType',
    'ConfirmationsError',
    'EmptyBodyError',
    'InvalidSecretError',
    'MalformedDetailPageError',
    'ResponseParseError',
    'RetryCancelledError',
    'ConfirmationTokenGenerator',
    'generate_confirmation_key',
    'get_device_id',
    'get_time',
    'CancellationToken',
    'SessionHttpClient',
    'SessionState',
    'ConfirmationExtractor',
    'ConfirmationResponder',
    'MobileConfirmations',
]
