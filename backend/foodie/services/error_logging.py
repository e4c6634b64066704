"""
Error Logging Service

Records unexpected errors in two places:
- rotating log files in settings.LOGS_DIR (console only when the directory
  is not writable)
- the error_logs table, so admins can browse and resolve them

Request data is captured selectively and sensitive values are redacted.

Usage:
    from foodie.services.error_logging import error_logger

    try:
        ...
    except Exception as e:
        error_id = error_logger.log_error(e, request=request, user=current_user)
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import UUID

from foodie.core.config import settings
from foodie.models.error_log import ErrorLog


logger = logging.getLogger("error_logging")
logger.setLevel(logging.DEBUG)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DETAILED_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024  # 10 MB

SEVERITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Headers worth keeping with an error report
SAFE_HEADERS = ("content-type", "accept", "accept-language", "x-request-id", "referer")

SENSITIVE_FIELDS = {
    "password", "password_hash", "token", "access_token", "refresh_token",
    "authorization", "cookie", "api_key", "secret", "credential", "invite_token",
}


def _directory_writable(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        marker = directory / ".write_test"
        marker.touch()
        marker.unlink()
        return True
    except OSError as e:
        print(f"Warning: Cannot write to logs directory {directory}: {e}")
        print("File logging disabled, using console only.")
        return False


def setup_file_logging(directory: Path) -> bool:
    """
    Attach rotating file handlers to the root logger.

    errors.log receives ERROR and above; app_detailed.log receives
    everything. Returns False (console only) when the directory cannot be
    written.
    """
    if not _directory_writable(directory):
        return False

    root_logger = logging.getLogger()
    existing = {getattr(h, "baseFilename", None) for h in root_logger.handlers}

    for filename, level, fmt, backups in (
        ("errors.log", logging.ERROR, LOG_FORMAT, 10),
        ("app_detailed.log", logging.DEBUG, DETAILED_LOG_FORMAT, 5),
    ):
        path = directory / filename
        if str(path.resolve()) in existing:
            continue
        handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=backups, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
        root_logger.addHandler(handler)
    return True


def sanitize_data(data: Any, depth: int = 0) -> Any:
    """
    Replace sensitive values with '[REDACTED]'.

    Keys are matched by substring, so "user_password" is redacted too.
    JWT-looking strings are redacted wherever they appear.
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if any(s in str(key).lower() for s in SENSITIVE_FIELDS)
            else sanitize_data(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_data(item, depth + 1) for item in data]
    if isinstance(data, str) and len(data) > 20 and data.startswith("eyJ"):
        return "[REDACTED_TOKEN]"
    return data


def truncate_string(s: str, max_length: int = 10000) -> str:
    if len(s) > max_length:
        return s[:max_length] + f"... [TRUNCATED, total {len(s)} chars]"
    return s


def _request_info(request: Any) -> Dict[str, Any]:
    info = {
        "request_method": None,
        "request_path": None,
        "request_query": None,
        "request_headers": None,
        "client_ip": None,
        "user_agent": None,
    }
    if request is None:
        return info
    try:
        info["request_method"] = request.method
        info["request_path"] = str(request.url.path)
        info["request_query"] = str(request.url.query) or None
        info["client_ip"] = request.client.host if request.client else None
        user_agent = request.headers.get("user-agent")
        info["user_agent"] = truncate_string(user_agent, 500) if user_agent else None
        headers = {key: request.headers[key] for key in SAFE_HEADERS if key in request.headers}
        info["request_headers"] = headers or None
    except AttributeError as e:
        logger.debug(f"Could not read request details: {e}")
    return info


class ErrorLogger:
    """Writes errors to the log files and the error_logs table."""

    def __init__(self):
        self.db_session_factory = None
        self.file_logging_enabled = False
        self.logs_dir: Optional[Path] = None

    def set_db_session_factory(self, factory):
        self.db_session_factory = factory

    def enable_file_logging(self, directory: Path) -> bool:
        self.logs_dir = Path(directory)
        self.file_logging_enabled = setup_file_logging(self.logs_dir)
        return self.file_logging_enabled

    def _write_detailed(self, report: str) -> None:
        if not self.file_logging_enabled:
            return
        try:
            with open(self.logs_dir / "errors_detailed.log", "a", encoding="utf-8") as f:
                f.write(f"\n{'=' * 80}\n{report}\n{'=' * 80}\n")
        except OSError as e:
            logger.error(f"Failed to write to error file: {e}")

    def log_error(
        self,
        error: Exception,
        request: Optional[Any] = None,
        user: Optional[Any] = None,
        severity: str = "error",
        context: Optional[Dict] = None,
        save_to_db: bool = True,
    ) -> Optional[UUID]:
        """
        Log an error with its request, user and traceback.

        Args:
            error: The exception that occurred
            request: Starlette/FastAPI Request (optional)
            user: Current user (optional)
            severity: debug, info, warning, error or critical
            context: Extra data, sanitized before storing
            save_to_db: Also store an ErrorLog row

        Returns:
            Id of the ErrorLog row, or None when not stored
        """
        timestamp = datetime.now(timezone.utc)
        error_type = type(error).__name__
        error_message = str(error)

        module = function = line_number = None
        exc_tb = error.__traceback__ or sys.exc_info()[2]
        if exc_tb is not None:
            stack_trace = "".join(traceback.format_exception(type(error), error, exc_tb))
            frames = traceback.extract_tb(exc_tb)
            if frames:
                module, function, line_number = frames[-1].filename, frames[-1].name, str(frames[-1].lineno)
        else:
            stack_trace = "".join(traceback.format_exception_only(type(error), error))

        request_info = _request_info(request)
        user_id = getattr(user, "id", None)
        user_email = getattr(user, "email", None)
        sanitized_context = sanitize_data(context) if context else None

        log_message = (
            f"{error_type}: {error_message} | User: {user_email or 'anonymous'} "
            f"| Path: {request_info['request_path'] or 'N/A'}"
        )
        logger.log(SEVERITY_LEVELS.get(severity, logging.ERROR), log_message)

        report = "\n".join(filter(None, [
            "=== ERROR LOG ===",
            f"Timestamp: {timestamp.isoformat()}",
            f"Type: {error_type}",
            f"Message: {error_message}",
            f"Severity: {severity}",
            f"Request: {request_info['request_method']} {request_info['request_path']}" if request else None,
            f"User: {user_id} {user_email}" if user else None,
            f"Context: {json.dumps(sanitized_context, default=str)}" if sanitized_context else None,
            "=== STACK TRACE ===",
            stack_trace,
        ]))
        self._write_detailed(truncate_string(report, 50000))

        if not (save_to_db and self.db_session_factory):
            return None

        try:
            db = self.db_session_factory()
            try:
                status_code = getattr(error, "status_code", None)
                entry = ErrorLog(
                    timestamp=timestamp,
                    error_type=error_type,
                    error_code=str(status_code) if status_code else None,
                    severity=severity,
                    module=module,
                    function=function,
                    line_number=line_number,
                    user_id=user_id,
                    user_email=user_email,
                    message=truncate_string(error_message or error_type, 1000),
                    stack_trace=truncate_string(stack_trace, 20000),
                    context_data=sanitized_context,
                    **request_info,
                )
                db.add(entry)
                db.commit()
                db.refresh(entry)
                logger.debug(f"Error logged to DB with ID: {entry.id}")
                return entry.id
            finally:
                db.close()
        except Exception as db_err:
            logger.error(f"Failed to save error to database: {db_err}")
            return None

    def log_warning(self, message: str):
        logger.warning(message)


# Singleton instance
error_logger = ErrorLogger()


def configure_error_logging(db_session_factory, logs_dir: Optional[Path] = None) -> bool:
    """
    Wire the error logger to the database and the log directory.
    Call this during app startup. Returns whether file logging is active.
    """
    error_logger.set_db_session_factory(db_session_factory)
    enabled = error_logger.enable_file_logging(Path(logs_dir or settings.LOGS_DIR))
    logger.info("Error logging system configured")
    return enabled
