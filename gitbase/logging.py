"""
Gitbase logging utilities.

Provides configurable logging for HTTP requests/responses and for the branch,
commit and merge-request orchestration steps. Access tokens, passwords and the
PRIVATE-TOKEN header are never written to the logs.
"""

import logging
import re
from typing import Any

_sdk_logger = logging.getLogger("gitbase")
_http_logger = logging.getLogger("gitbase.http")
_orchestration_logger = logging.getLogger("gitbase.orchestration")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # GitLab personal/project access tokens
    (re.compile(r"glpat-[A-Za-z0-9_\-]{10,}"), "[TOKEN_REDACTED]"),
    # oauth2:<token>@host in clone URLs
    (re.compile(r"(oauth2:)[^@\s]+(@)"), r"\1[REDACTED]\2"),
    # PRIVATE-TOKEN header
    (re.compile(r"(private-token['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE), r"\1[REDACTED]"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_SENSITIVE_KEYS = {"token", "private-token", "password", "secret", "api_key", "authorization"}


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    orchestration_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure gitbase logging.

    Args:
        level: Default log level for all gitbase loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        orchestration_level: Log level for branch/commit/MR steps (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from gitbase.logging import configure_logging

        # Show every request sent to GitLab
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _orchestration_logger.setLevel(
        orchestration_level if orchestration_level is not None else level
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a gitbase logger.

    Args:
        name: Logger name suffix (e.g., "http", "orchestration.branches").
            If None, returns the main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"gitbase.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Args:
        text: Text that may contain tokens or passwords

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: token, password, secret, ...)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def _summarize_actions(body: dict[str, Any]) -> dict[str, Any]:
    # File contents can be large; keep only the action kind and path.
    actions = body.get("actions")
    if not isinstance(actions, list):
        return body
    summary = dict(body)
    summary["actions"] = [
        {"action": a.get("action"), "file_path": a.get("file_path")}
        for a in actions
        if isinstance(a, dict)
    ]
    return summary


def log_http_request(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """
    Log an HTTP request at DEBUG level with sensitive data masked.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request path or URL
        params: Query parameters (optional)
        body: Request body (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {mask_sensitive_data(url)}"]

    if params:
        log_parts.append(f"params={safe_log_dict(params)}")

    if body:
        log_parts.append(f"body={safe_log_dict(_summarize_actions(body))}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an HTTP response at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request path or URL
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {mask_sensitive_data(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _http_logger.debug(" | ".join(log_parts))


def log_branch_operation(
    operation: str,
    project: int | str,
    branch: str,
    ref: str | None = None,
) -> None:
    """
    Log a branch mutation (create, delete, move, backup) at INFO level.

    Args:
        operation: Operation name (e.g., "create", "delete", "backup")
        project: Project id or path
        branch: Branch being mutated
        ref: Source ref or commit (optional)
    """
    message = f"{operation}: project={project}, branch={branch}"
    if ref:
        message += f", ref={ref}"
    _orchestration_logger.info(message)


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_branch_operation",
]
