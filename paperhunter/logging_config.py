"""Logging configuration: brief console output plus a detailed rotating session log"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Session log files kept on disk (oldest removed on startup)
MAX_SESSION_LOGS = 5

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncpg", "google_genai")


def _cleanup_old_logs(log_dir: Path, stem: str, keep: int = MAX_SESSION_LOGS):
    """Delete the oldest session logs so that `keep` remain after this session starts"""
    existing = sorted(log_dir.glob(f"{stem}_*.log"), reverse=True)  # Newest first
    for old_log in existing[keep - 1:]:
        try:
            old_log.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug(f"Could not remove old log {old_log}: {e}")


def setup_logging(
    log_file: str = "logs/paperhunter.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure root logging with two destinations:
    - Console: brief `LEVEL: message` lines (INFO by default)
    - File: timestamped per-session file with module and line (DEBUG by default),
      rotated at 10MB

    Args:
        log_file: Base path; the session file is `<stem>_<timestamp>.log` next to it
        console_level: Console threshold
        file_level: File threshold

    Returns:
        Path of the session log file
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    _cleanup_old_logs(log_path.parent, log_path.stem)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Filtering happens in handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10 * 1024 * 1024,
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Third-party chatter stays in the file only at WARNING and above
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log} ({logging.getLevelName(file_level)})"
    )
    return session_log
