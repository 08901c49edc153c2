"""
Пакет qrtool
============

Утилита командной строки для кодирования произвольных байтов в QR-коды
(обычные и Micro QR) и обратного декодирования из растровых и SVG-изображений.

Этот пакет предоставляет:
    - Разбор цветовых выражений (hex, именованные цвета, rgb/hsl/hwb/oklab/oklch)
    - Построение символа через внешние движки (qrcode, segno)
    - Рендеринг в PNG, SVG, PIC, ANSI (16/256/24 бит), ASCII и Unicode
    - Определение формата входного изображения (флаг, расширение, сигнатура)
    - Стабильные коды завершения в стиле sysexits

Пример базового использования:
    >>> from qrtool import get_logger
    >>> from qrtool.barcodegen import SymbolAdapter
    >>> from qrtool.model import EccLevel, OutputFormat, RenderOptions
    >>> from qrtool.render import render
    >>>
    >>> symbol = SymbolAdapter().encode(b"QR code", EccLevel.M)
    >>> request = RenderOptions(output_format=OutputFormat.UNICODE).resolve(symbol)
    >>> print(render(symbol, request))

Управление конфигурацией:
    >>> import os
    >>> os.environ["QRTOOL_LOG_LEVEL"] = "DEBUG"
    >>>
    >>> from qrtool import load_config
    >>> config = load_config()
    >>> config["error_correction_level"]
    'm'

Версия: 0.1.0
Лицензия: MIT
Python: 3.11+
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "qrtool Development Team"
__description__ = "Encode and decode QR codes from the command line"
__license__ = "MIT"
__python_requires__ = ">=3.11"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

LOGGER_NAMESPACE = "qrtool"
CONFIG_ENV_VAR = "QRTOOL_CONFIG"
LOG_LEVEL_ENV_VAR = "QRTOOL_LOG_LEVEL"

if sys.version_info < (3, 11):
    raise RuntimeError(
        f"qrtool требует Python 3.11 или выше. "
        f"Текущая версия: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

_LOG_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_LOG_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"


def _setup_logging() -> None:
    """
    Инициализировать общепакетную конфигурацию логирования.

    Настраивает логгер пакета ``qrtool`` с консольным обработчиком (stderr).
    Уровень берётся из переменной окружения QRTOOL_LOG_LEVEL
    (DEBUG, INFO, WARNING, ERROR, CRITICAL), по умолчанию WARNING,
    чтобы диагностика не смешивалась с выводом команды.

    Функция идемпотентна - повторные вызовы не имеют дополнительного эффекта.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    if package_logger.handlers:
        return

    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
    package_logger.setLevel(_LOG_LEVEL_MAP.get(level_name, logging.WARNING))

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    # Не дублируем записи в корневом логгере приложения-хоста
    package_logger.propagate = False


def add_file_logging(log_file: Path) -> None:
    """
    Подключить ротирующий файловый обработчик к логгеру пакета.

    Args:
        log_file: Путь к файлу журнала; каталог создаётся при необходимости.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in package_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=10 * 1024 * 1024,  # 10 МБ
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as e:
        package_logger.warning(
            "Не удалось инициализировать файловое логирование %s: %s", log_file, e
        )
        return
    file_handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    package_logger.addHandler(file_handler)


def set_log_level(level: int) -> None:
    """Set the level of the package logger (used by ``--verbose``)."""
    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер для указанного модуля в пространстве имён ``qrtool``.

    Аргументы:
        module_name: Обычно ``__name__``.

    Возвращает:
        Экземпляр logging.Logger, наследующий обработчики пакета.

    Пример:
        >>> logger = get_logger("plugins.extra")
        >>> logger.name
        'qrtool.plugins.extra'
    """
    if module_name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{LOGGER_NAMESPACE}.main")
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{module_name.lstrip('.')}")


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

_DEFAULT_CONFIG: Dict[str, Any] = {
    "log_level": "WARNING",
    "log_file": None,
    "error_correction_level": "m",
    "output_format": "png",
    "optimize_png_level": None,
    "zopfli_iterations": None,
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Загрузить конфигурацию из JSON-файла или использовать настройки по умолчанию.

    Порядок поиска файла: аргумент ``config_path``, переменная окружения
    QRTOOL_CONFIG, ``qrtool.json`` в текущем каталоге. Отсутствующий или
    повреждённый файл не является ошибкой: записывается предупреждение
    и возвращаются значения по умолчанию.

    Ключи конфигурации:
        - log_level: str - уровень логирования
        - log_file: str | None - файл журнала (ротация 10 МБ x 5)
        - error_correction_level: str - уровень коррекции по умолчанию (l/m/q/h)
        - output_format: str - формат вывода по умолчанию
        - optimize_png_level: int | str | None - уровень оптимизации PNG
        - zopfli_iterations: int | None - число итераций Zopfli

    Аргументы:
        config_path: Опциональный путь к файлу конфигурации.

    Возвращает:
        Словарь со всеми ключами по умолчанию, перекрытыми
        пользовательскими значениями.
    """
    logger = get_logger(__name__)

    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else Path("qrtool.json")

    config = _DEFAULT_CONFIG.copy()

    if not config_path.exists():
        logger.debug("Файл конфигурации %s не найден, используются значения по умолчанию", config_path)
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
        if not isinstance(user_config, dict):
            raise ValueError(
                f"Файл конфигурации должен содержать JSON-объект, "
                f"получен {type(user_config).__name__}"
            )
    except json.JSONDecodeError as e:
        logger.warning(
            "Не удалось разобрать %s: недопустимый JSON в строке %d, столбце %d",
            config_path,
            e.lineno,
            e.colno,
        )
        return config
    except OSError as e:
        logger.warning("Не удалось прочитать %s: %s", config_path, e)
        return config
    except ValueError as e:
        logger.warning("Недопустимый формат конфигурации: %s", e)
        return config

    unknown = sorted(set(user_config) - set(_DEFAULT_CONFIG))
    if unknown:
        logger.warning("Неизвестные ключи конфигурации проигнорированы: %s", ", ".join(unknown))
    config.update({k: v for k, v in user_config.items() if k in _DEFAULT_CONFIG})
    logger.info("Конфигурация загружена из %s", config_path)
    return config


def check_dependencies() -> Dict[str, bool]:
    """
    Проверить, какие внешние библиотеки можно импортировать.

    Функция не вызывает исключений для отсутствующих пакетов - она
    возвращает словарь состояний, из которого строится набор
    возможностей (см. ``qrtool.app_context``).

    Возвращает:
        Словарь: имя дистрибутива -> доступность.

    Пример:
        >>> deps = check_dependencies()
        >>> deps["pillow"]
        True
    """
    dependencies: Dict[str, bool] = {}
    modules = {
        "pillow": "PIL",
        "qrcode": "qrcode",
        "segno": "segno",
        "zxing-cpp": "zxingcpp",
        "pyoxipng": "oxipng",
        "cairosvg": "cairosvg",
    }
    for dist_name, module_name in modules.items():
        try:
            __import__(module_name)
            dependencies[dist_name] = True
        except ImportError:
            dependencies[dist_name] = False
        except OSError:
            # cairosvg импортируется, но не находит системную libcairo
            dependencies[dist_name] = False
    return dependencies


__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "__license__",
    "__python_requires__",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    "add_file_logging",
    "check_dependencies",
    "get_logger",
    "load_config",
    "set_log_level",
]

_setup_logging()
