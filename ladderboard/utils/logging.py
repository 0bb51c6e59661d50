"""Logging helpers that add request and game context to error reports."""

import logging
import traceback
from os import getenv
from typing import Optional, Any

DEBUG = getenv("APP_DEBUG", "false").lower() == "true"

logger = logging.getLogger("Ladderboard")


def debug_log(message: str, *args, **kwargs) -> None:
    """Log at DEBUG (or the given `level`) only when APP_DEBUG is on."""
    if DEBUG:
        level = kwargs.pop("level", logging.DEBUG)
        logger.log(level, message, *args, **kwargs)


def error_log(
    message: str,
    exc: Optional[Exception] = None,
    context: Optional[dict] = None,
) -> None:
    """
    Log an error as one line: message, then context, then the exception.
    
    Args:
        message: What failed
        exc: Exception that caused it, if any
        context: Identifiers that help find the failing record (game_id, user, ...)
    """
    parts = [message]
    
    if context:
        parts.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))
    
    if exc:
        parts.append(f"Exception: {type(exc).__name__}: {exc}")
        # The traceback is inlined only in debug; exc_info carries it otherwise
        if DEBUG:
            parts.append(f"Traceback:\n{''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}")
    
    full_message = " | ".join(parts)
    
    if exc:
        logger.error(full_message, exc_info=exc)
    else:
        logger.error(full_message)


def log_exception_with_context(
    exc: Exception,
    context: Optional[dict] = None,
    message: Optional[str] = None
) -> None:
    msg = message or f"Unhandled exception: {type(exc).__name__}"
    error_log(msg, exc=exc, context=context)


def log_request_error(
    request: Any,
    exc: Exception,
    message: Optional[str] = None
) -> None:
    """Log an exception together with the path, method and path params of the request."""
    context = {}
    
    url = getattr(request, "url", None)
    if url is not None:
        context["path"] = getattr(url, "path", str(url))
    method = getattr(request, "method", None)
    if method:
        context["method"] = method
    path_params = getattr(request, "path_params", None)
    if path_params:
        context.update({k: str(v) for k, v in path_params.items()})
    
    log_exception_with_context(exc, context=context, message=message)
