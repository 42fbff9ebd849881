import logging
import sys

from colorama import init, Fore
from pythonjsonlogger.json import JsonFormatter

from lib.config import Config

init(autoreset=True)
g_log_level = logging.INFO

# libraries that are too chatty on INFO
NOISY_LOGGERS = ('web3', 'urllib3', 'aiohttp.access', 'asyncio')

LOG_FORMAT = '[%(levelname)s] | %(asctime)s | %(name)s | %(funcName)s | "%(message)s"'


class WithLogger:
    @property
    def logger_prefix(self):
        return ''

    def __init__(self):
        super(WithLogger, self).__init__()
        self.logger = class_logger(self, self.logger_prefix)


def class_logger(self, prefix=''):
    return logging.getLogger(prefix + self.__class__.__name__)


class ColorFormatter(logging.Formatter):
    COLORS = {
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "DEBUG": Fore.BLUE,
        "INFO": Fore.GREEN,
        "CRITICAL": Fore.RED
    }

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname)
        return f'{color}{message}{Fore.RESET}' if color else message


class UnknownLogStyle(ValueError):
    pass


def make_formatter(style: str) -> logging.Formatter:
    if style == 'json':
        return JsonFormatter(
            "{levelname}{message}{asctime}{name}{exc_info}",
            style='{',
            json_ensure_ascii=False,
        )
    if style == 'colorful':
        return ColorFormatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    if style == 'normal':
        return logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    raise UnknownLogStyle(f'Unknown log style: {style!r}')


def setup_logs(log_level, is_std_out=True, style='colorful'):
    global g_log_level
    g_log_level = logging.getLevelName(log_level)

    handler = logging.StreamHandler(sys.stdout if is_std_out else sys.stderr)
    handler.setFormatter(make_formatter(style))

    logging.basicConfig(
        level=g_log_level,
        handlers=[handler],
        force=True
    )

    if g_log_level != logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def setup_logs_from_config(cfg: Config, log_level=None):
    log_level = str(log_level or cfg.log_level).upper().strip()
    setup_logs(log_level, style=cfg.log_style)
    return log_level
