# src/grade_watcher/config.py
import os
import subprocess
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigError

log = logging.getLogger(__name__) # Use logger for messages here too

# --- Path Calculation (Done Once) ---
CONFIG_DIR = os.path.dirname(os.path.abspath(__file__)) # src/grade_watcher/
TEMPLATE_DIR = os.path.join(CONFIG_DIR, "templates")   # src/grade_watcher/templates/
TEXT_TEMPLATE_FILENAME = "grade_report.txt"
HTML_TEMPLATE_FILENAME = "grade_report.html"

# Default env file is looked up relative to the working directory, like the CLI does
DEFAULT_ENV_PATH = ".env"

# --- Define Configuration Constants ---

# Logging Settings
LOG_DIRECTORY = os.environ.get('LOG_DIRECTORY', 'logs')
LOG_FILENAME = "grade_watcher.log"
LOG_FILE_PATH = os.path.join(LOG_DIRECTORY, LOG_FILENAME)
LOG_LEVEL_STR = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO) # Default to INFO if invalid level
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(threadName)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
MAX_LOG_SIZE_BYTES = int(os.environ.get('MAX_LOG_SIZE_MB', 10)) * 1024 * 1024  # Default 10 MB
BACKUP_COUNT = int(os.environ.get('LOG_BACKUP_COUNT', 5)) # Default 5 backups

# Upstream Service Settings
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:72.0) Gecko/20100101 Firefox/72.0"
LOGIN_URL = "https://passport.ustc.edu.cn/login"
LOGIN_SERVICE_URL = "https://jw.ustc.edu.cn/ucas-sso/login"
SEMESTERS_URL = "https://jw.ustc.edu.cn/for-std/grade/sheet/getSemesters"
GRADE_LIST_URL = "https://jw.ustc.edu.cn/for-std/grade/sheet/getGradeList"
TRAIN_TYPE_ID = "1"

# Polling Settings
MIN_INTERVAL_MINUTES = 10.0

# Mail Settings
DEFAULT_SMTP_PORT = 587 # Submission port, STARTTLS


@dataclass(frozen=True)
class MailConfig:
    username: str
    password: str
    server: str
    port: int
    sendto: List[str]


@dataclass(frozen=True)
class UstcConfig:
    username: str
    password: str
    semesters: List[str]
    interval: float # minutes
    send_first: bool = False


@dataclass(frozen=True)
class WatcherConfig:
    mail: MailConfig
    ustc: UstcConfig


# --- Helpers ---

def resolve_secret(password: Optional[str], pass_exec: Optional[str], name: str) -> str:
    """
    Returns the plaintext secret for a config section.

    A plain password wins over ``pass_exec``. Otherwise the command is run
    through the shell and its stdout, minus trailing newlines, is the secret.

    Raises:
        ConfigError: If neither is configured or the command fails.
    """
    if password:
        return password
    if not pass_exec:
        raise ConfigError(f"{name}: either a password or a pass_exec command must be set.")

    log.debug(f"Resolving {name} password by running its pass_exec command.")
    try:
        result = subprocess.run(pass_exec, shell=True, capture_output=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise ConfigError(f"{name}: pass_exec command failed: {e}") from e

    try:
        return result.stdout.decode('utf-8').rstrip('\n')
    except UnicodeDecodeError as e:
        raise ConfigError(f"{name}: pass_exec output is not valid UTF-8.") from e


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_server(value: str) -> Tuple[str, int]:
    host, sep, port = value.rpartition(':')
    if not sep:
        return value, DEFAULT_SMTP_PORT
    try:
        return host, int(port)
    except ValueError:
        raise ConfigError(f"MAIL_SERVER port '{port}' is not a number.")


def _require(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ConfigError(f"Required setting {name} is not set.")
    return value


# --- Loading ---

def load_config(env_path: Optional[str] = None) -> WatcherConfig:
    """
    Loads the watcher configuration from an env file and the process environment.

    Variables already present in the environment take precedence over the file.

    Args:
        env_path: Path to the env file. Defaults to ``.env`` in the working
                  directory, which may be absent. An explicitly given path must exist.

    Returns:
        The validated WatcherConfig with secrets resolved.

    Raises:
        ConfigError: If the file is missing, a setting is missing or invalid,
                     or a secret cannot be resolved.
    """
    path = env_path or DEFAULT_ENV_PATH
    if env_path and not os.path.isfile(env_path):
        raise ConfigError(f"Cannot find configuration file `{env_path}'")

    loaded = load_dotenv(dotenv_path=path)
    if loaded:
        log.info(f"Loaded environment variables from: {path}")
    else:
        log.warning(f".env file not found or empty at: {path}")

    interval_str = os.environ.get('USTC_INTERVAL', str(MIN_INTERVAL_MINUTES))
    try:
        interval = float(interval_str)
    except ValueError:
        raise ConfigError(f"USTC_INTERVAL '{interval_str}' is not a number.")
    if interval < MIN_INTERVAL_MINUTES:
        raise ConfigError(f"Interval {interval} is too small, should >= {MIN_INTERVAL_MINUTES:g}.")

    semesters = _split_list(os.environ.get('USTC_SEMESTERS'))
    if not semesters:
        log.warning("Config: USTC_SEMESTERS is empty. Semester GPA and scores will be empty.")

    ustc = UstcConfig(
        username=_require('USTC_USERNAME'),
        password=resolve_secret(os.environ.get('USTC_PASSWORD'), os.environ.get('USTC_PASS_EXEC'), 'ustc'),
        semesters=semesters,
        interval=interval,
        send_first=_parse_bool(os.environ.get('USTC_SEND_FIRST')),
    )

    host, port = _parse_server(_require('MAIL_SERVER'))
    sendto = _split_list(os.environ.get('MAIL_SENDTO'))
    if not sendto:
        raise ConfigError("MAIL_SENDTO must list at least one recipient.")

    mail = MailConfig(
        username=_require('MAIL_USERNAME'),
        password=resolve_secret(os.environ.get('MAIL_PASSWORD'), os.environ.get('MAIL_PASS_EXEC'), 'mail'),
        server=host,
        port=port,
        sendto=sendto,
    )

    log.debug(f"Configuration loading complete. Interval: {interval} minutes, semesters: {semesters}")
    return WatcherConfig(mail=mail, ustc=ustc)
