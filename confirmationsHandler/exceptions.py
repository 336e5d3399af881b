"""
Исключения клиента мобильных подтверждений Steam
"""


class ConfirmationsError(Exception):
    """Базовое исключение клиента подтверждений"""
    pass


class InvalidSecretError(ConfirmationsError):
    """identity_secret не удалось декодировать"""
    pass


class EmptyBodyError(ConfirmationsError):
    """Steam ответил 200, но с пустым телом"""

    def __init__(self, url: str):
        super().__init__(f"Empty response body from {url}")
        self.url = url


class ResponseParseError(ConfirmationsError):
    """Ответ на ajaxop/multiajaxop не является JSON-объектом"""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class MalformedDetailPageError(ConfirmationsError):
    """На странице деталей нет контейнера трейд оффера"""
    pass


class RetryCancelledError(ConfirmationsError):
    """Ожидающий повтор запроса был отменён через CancellationToken"""
    pass
