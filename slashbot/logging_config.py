"""Logging configuration for slashbot.

Every module logs through a structlog logger named ``slashbot.<subsystem>``.
Records propagate to the console, to a combined ``slashbot.log`` and to one
rotating file per subsystem, after secrets have been scrubbed.
"""

import logging
import logging.handlers
import re
import sys
from typing import Any, Dict, Optional

import structlog

# Subsystem names; each gets its own RotatingFileHandler
SUBSYSTEMS = ("bot", "security", "commands", "responder")

# stdlib logger name prefix for hierarchy-based propagation
LOGGER_PREFIX = "slashbot"

# ---------------------------------------------------------------------------
# Secret sanitization
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    # Slack bot/user/app/refresh tokens
    re.compile(r"xox[abpr]-[a-zA-Z0-9-]{10,}"),
    # Request signatures (v0=<hex digest>)
    re.compile(r"v0=[0-9a-fA-F]{16,}"),
    # Bearer token values in headers
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
]

# response_url paths embed a single-use delivery token
_RESPONSE_URL_PATTERN = re.compile(
    r"(https://hooks\.slack(?:-gov)?\.com/commands/)[^\s\"']+"
)

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    """Scrub secrets and callback tokens from a single string value."""
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    value = _RESPONSE_URL_PATTERN.sub(lambda m: m.group(1) + _REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that scrubs tokens, signatures and callback URLs.

    Walks all string values in the event dict (one level into lists,
    tuples and dicts) and replaces matches with a redacted placeholder.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(
                _scrub_value(v) if isinstance(v, str) else v
                for v in value
            )
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _scrub_value(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _attach_file(
    logger: logging.Logger, path, level: int, config, formatter: logging.Formatter
) -> None:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=config.logging_max_file_size_mb * 1024 * 1024,
        backupCount=config.logging_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _reset(name: str, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = True
    return logger


def setup_logging(config=None) -> None:
    """Configure structlog and the stdlib handlers behind it.

    Called twice at startup. The first call, before settings are loaded,
    logs to the console only and leaves structlog loggers uncached. The
    second call, with a Config, adds the rotating log files and applies
    the configured global and per-subsystem levels.
    """
    global_level = _level(config.logging_level if config else None, logging.INFO)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(global_level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(console)

    app_logger = _reset(LOGGER_PREFIX, logging.DEBUG)
    subsystem_loggers = {}
    overrides = config.logging_subsystem_levels if config else {}
    for subsystem in SUBSYSTEMS:
        level = _level(overrides.get(subsystem), global_level)
        subsystem_loggers[subsystem] = (
            _reset(f"{LOGGER_PREFIX}.{subsystem}", level), level
        )

    if config is not None:
        log_dir = config.log_dir
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # Console logging still works on a read-only filesystem
            print(
                f"WARNING: Cannot create log directory {log_dir}: {exc}. "
                "Falling back to console-only logging.",
                file=sys.stderr,
            )
        else:
            file_formatter = structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.add_logger_name,
                    structlog.stdlib.add_log_level,
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.dev.ConsoleRenderer(colors=False),
                ],
            )
            _attach_file(
                app_logger, log_dir / f"{LOGGER_PREFIX}.log",
                global_level, config, file_formatter,
            )
            for subsystem, (logger, level) in subsystem_loggers.items():
                _attach_file(
                    logger, log_dir / f"{subsystem}.log", level, config, file_formatter
                )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=config is not None,
    )
