import logging
import coloredlogs
import os
import sys
from datetime import datetime
from pathlib import Path

class DetailedFormatter(logging.Formatter):
    """Форматтер для файловых логов: время с миллисекундами, модуль, функция"""

    def format(self, record):
        if hasattr(record, 'funcName') and record.funcName != '<module>':
            location = f"{record.module}.{record.funcName}:{record.lineno}"
        else:
            location = f"{record.module}:{record.lineno}"

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]

        if hasattr(record, 'extra_info'):
            extra = f" | {record.extra_info}"
        else:
            extra = ""

        return f"{timestamp} | {record.levelname:8} | {location:30} | {record.getMessage()}{extra}"

class BotLogger:
    """Логер клиента мобильных подтверждений"""

    def __init__(self, name="SteamConfirmations", log_dir=None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Очищаем существующие обработчики
        self.logger.handlers.clear()

        log_dir = Path(log_dir or os.getenv("CONF_LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_console_handler()
        self._setup_file_handlers(log_dir)
        self._add_special_methods()

        self.debug("Логер инициализирован", extra_info=f"Log dir: {log_dir}")

    def _setup_console_handler(self):
        """Настройка консольного вывода"""
        coloredlogs.install(
            level=os.getenv("CONF_LOG_LEVEL", "INFO"),
            logger=self.logger,
            stream=sys.stdout,
            fmt="%(asctime)s | %(levelname)-8s | %(message)s",
            field_styles={
                'asctime': {'color': 'blue'},
                'levelname': {'color': 'white', 'bold': True},
                'message': {'color': 'white'}
            },
            level_styles={
                'debug': {'color': 'cyan'},
                'info': {'color': 'green'},
                'warning': {'color': 'yellow'},
                'error': {'color': 'red'},
                'critical': {'color': 'magenta', 'bold': True}
            }
        )

    def _setup_file_handlers(self, log_dir):
        """Настройка файлового вывода"""
        files = (
            ("application.log", logging.DEBUG),
            ("errors.log", logging.ERROR),
        )
        for filename, level in files:
            handler = logging.FileHandler(log_dir / filename, encoding="utf-8-sig")
            handler.setLevel(level)
            handler.setFormatter(DetailedFormatter())
            self.logger.addHandler(handler)

        # Лог событий сессии и подтверждений, без отладочного шума
        confirmations_handler = logging.FileHandler(
            log_dir / "confirmations.log",
            encoding="utf-8-sig"
        )
        confirmations_handler.setLevel(logging.INFO)
        confirmations_handler.setFormatter(DetailedFormatter())
        self.logger.addHandler(confirmations_handler)

    def _add_special_methods(self):
        """Добавление специальных методов логирования"""

        def log_session_invalidated(reason):
            self.warning(
                "🔒 Сессия недействительна, нужны новые cookies",
                extra_info=f"Reason: {reason}"
            )

        def log_session_restored():
            self.info("🔓 Cookies обновлены, сессия восстановлена", extra_info="Session restored")

        def log_rate_limited(delay):
            self.warning(
                "⏳ Steam вернул 429, замедляемся",
                extra_info=f"Retry in: {delay:.1f}s"
            )

        def log_confirmations_fetched(count):
            self.info(
                f"📋 Получено подтверждений: {count}",
                extra_info="Listing parsed"
            )

        def log_confirmation_responded(op, ids, success):
            level = self.info if success else self.warning
            level(
                f"{'✅' if success else '❌'} Ответ '{op}' на подтверждения",
                extra_info=f"Ids: {', '.join(str(i) for i in ids)}, Success: {success}"
            )

        def log_error(component, error_msg, extra_data=None):
            self.error(
                f"❌ Ошибка в {component}: {error_msg}",
                extra_info=extra_data or "No additional data"
            )

        self.session_invalidated = log_session_invalidated
        self.session_restored = log_session_restored
        self.rate_limited = log_rate_limited
        self.confirmations_fetched = log_confirmations_fetched
        self.confirmation_responded = log_confirmation_responded
        self.log_error = log_error

    def info(self, message, extra_info=None):
        """Логирование информационного сообщения"""
        if extra_info:
            self.logger.info(message, extra={'extra_info': extra_info}, stacklevel=2)
        else:
            self.logger.info(message, stacklevel=2)

    def debug(self, message, extra_info=None):
        """Логирование отладочного сообщения"""
        if extra_info:
            self.logger.debug(message, extra={'extra_info': extra_info}, stacklevel=2)
        else:
            self.logger.debug(message, stacklevel=2)

    def warning(self, message, extra_info=None):
        """Логирование предупреждения"""
        if extra_info:
            self.logger.warning(message, extra={'extra_info': extra_info}, stacklevel=2)
        else:
            self.logger.warning(message, stacklevel=2)

    def error(self, message, extra_info=None):
        """Логирование ошибки"""
        if extra_info:
            self.logger.error(message, extra={'extra_info': extra_info}, stacklevel=2)
        else:
            self.logger.error(message, stacklevel=2)

    def critical(self, message, extra_info=None):
        """Логирование критической ошибки"""
        if extra_info:
            self.logger.critical(message, extra={'extra_info': extra_info}, stacklevel=2)
        else:
            self.logger.critical(message, stacklevel=2)

# Глобальный экземпляр логера
logger = BotLogger()
