from __future__ import annotations

import logging
from typing import Any, Callable

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured, MiddlewareNotUsed
from django.http import HttpRequest, HttpResponse

from .changed_files import resolve_changed_files
from .detector import QueryPatternDetector
from .exceptions import NPlusOneQueryDetected
from .handlers import FilteredNotificationHandler

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "ENABLED": True,
    "CHANGED_FILES": (),
    "CHANGED_FILES_ENV": None,
    "GIT_BASE": None,
    "THRESHOLD": 2,
    "RAISE": False,
}


def get_config() -> dict[str, Any]:
    return {**DEFAULTS, **getattr(settings, "CHANGED_FILES_FILTER", {})}


def _threshold(value: Any) -> int:
    # Settings read from the environment arrive as strings.
    try:
        threshold = int(value)
    except (TypeError, ValueError) as e:
        raise ImproperlyConfigured(
            f"CHANGED_FILES_FILTER['THRESHOLD'] must be an integer, got {value!r}"
        ) from e
    if threshold < 2:
        raise ImproperlyConfigured(
            f"CHANGED_FILES_FILTER['THRESHOLD'] must be at least 2, got {value!r}"
        )
    return threshold


class NPlusOneFilterMiddleware:
    """
    Watch every request for repeated SELECTs and report the ones whose call
    stack touches a changed file.

    Configured through ``settings.CHANGED_FILES_FILTER``::

        CHANGED_FILES_FILTER = {
            "CHANGED_FILES_ENV": "CHANGED_FILES",
            "GIT_BASE": "origin/main",
            "RAISE": True,  # fail the request, e.g. under test
        }

    One handler is built per process and shared by all request threads.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        config = get_config()
        if not config["ENABLED"]:
            raise MiddlewareNotUsed("changed_files_filter is disabled")

        self.get_response = get_response
        self.threshold = _threshold(config["THRESHOLD"])
        self.raise_on_detection = config["RAISE"]
        self.handler = FilteredNotificationHandler(resolve_changed_files(config))

        logger.info(
            "N+1 filter active for %d changed file(s)",
            len(self.handler.changed_files),
        )

    def __call__(self, request: HttpRequest) -> HttpResponse:
        shown = []

        def report(notification):
            if self.handler.handle(notification):
                shown.append(notification)

        with QueryPatternDetector(callback=report, threshold=self.threshold):
            response = self.get_response(request)

        if shown:
            logger.debug("%s %s: %s", request.method, request.path, self.handler.stats())
            if self.raise_on_detection:
                raise NPlusOneQueryDetected(shown)

        return response
