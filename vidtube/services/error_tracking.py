"""
Error reporting.

Server-side failures, meaning unhandled exceptions and ApiErrors with a 5xx
status, are logged with their traceback and sent to Sentry when SENTRY_DSN
is configured. Client errors are answered with the error envelope and never
reported.
"""

from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.utils import BadDsn

from vidtube import __version__
from vidtube.config import settings
from vidtube.exceptions import ApiError
from vidtube.services.logging_service import app_logger


def is_client_error(exception: BaseException) -> bool:
    return isinstance(exception, ApiError) and exception.status_code < 500


def drop_client_errors(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Sentry ``before_send`` hook; returning None discards the event."""
    exc_info = hint.get("exc_info")
    if exc_info and is_client_error(exc_info[1]):
        return None
    return event


class ErrorTracker:
    """Log and forward server-side exceptions."""

    def __init__(self, dsn: Optional[str] = None):
        self.enabled = False

        dsn = dsn or settings.SENTRY_DSN
        if not dsn:
            return
        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=settings.ENVIRONMENT,
                release=f"vidtube@{__version__}",
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
                integrations=[FastApiIntegration(), SqlalchemyIntegration()],
                before_send=drop_client_errors,
                send_default_pii=False
            )
        except BadDsn as e:
            app_logger.error("Sentry is misconfigured; errors are logged only", error=str(e))
            return

        self.enabled = True
        app_logger.info("Sentry error tracking enabled", environment=settings.ENVIRONMENT)

    def capture_exception(self, exception: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Report one exception.

        Args:
            exception: The failure, normally the one currently being handled
            context: Request details attached to the log line and the Sentry event
        """
        context = context or {}
        app_logger.exception(
            "Unhandled server error",
            exc_info=exception,
            error_type=type(exception).__name__,
            error=str(exception),
            **context
        )

        if self.enabled:
            with sentry_sdk.new_scope() as scope:
                for key, value in context.items():
                    scope.set_extra(key, value)
                sentry_sdk.capture_exception(exception)


error_tracker = ErrorTracker()
