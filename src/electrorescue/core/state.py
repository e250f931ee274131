# -*- coding: utf-8 -*-
"""Analysis session state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from electrorescue.constants import DEFAULT_ERROR_MESSAGE
from electrorescue.models.analysis_result import AnalysisResult
from electrorescue.models.image_payload import ImagePayload
from electrorescue.utils.image_utils import ImageFormatError, parse_data_url

logger = logging.getLogger(__name__)


class AppState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


@dataclass
class AnalysisSession:
    """Mutable UI state shared by the controller and the main window.

    `request_id` grows with every selected image so that a completion for an
    older request can be recognised and dropped.
    """

    state: AppState = AppState.IDLE
    image: str | None = None
    result: AnalysisResult | None = None
    error: str | None = None
    request_id: int = 0

    @property
    def is_busy(self) -> bool:
        return self.state is AppState.ANALYZING

    def select_image(self, data_url: str) -> ImagePayload:
        """Start a new analysis for `data_url`.

        The image is kept for preview even when it turns out to be malformed;
        in that case the session ends in ERROR and `ImageFormatError` is raised.
        """
        self.image = data_url
        self.error = None
        self.request_id += 1
        self._move_to(AppState.ANALYZING)
        try:
            payload = parse_data_url(data_url)
        except ImageFormatError as exc:
            self.error = str(exc)
            self._move_to(AppState.ERROR)
            raise
        return payload

    def resolve(self, request_id: int, result: AnalysisResult) -> bool:
        """Apply a successful completion. Returns False for stale requests."""
        if not self._is_current(request_id):
            return False
        self.result = result
        self._move_to(AppState.SUCCESS)
        return True

    def reject(self, request_id: int, message: str | None) -> bool:
        """Apply a failed completion. Returns False for stale requests."""
        if not self._is_current(request_id):
            return False
        self.error = message or DEFAULT_ERROR_MESSAGE
        self._move_to(AppState.ERROR)
        return True

    def try_again(self) -> None:
        if self.state is not AppState.ERROR:
            raise InvalidTransitionError(f"Cannot retry from state {self.state.value}")
        self.error = None
        self._move_to(AppState.IDLE)

    def reset(self) -> None:
        self.image = None
        self.result = None
        self.error = None
        if self.state is not AppState.IDLE:
            self._move_to(AppState.IDLE)

    def _is_current(self, request_id: int) -> bool:
        if request_id != self.request_id or self.state is not AppState.ANALYZING:
            logger.info(
                "Ignoring completion for request %s (current=%s, state=%s)",
                request_id,
                self.request_id,
                self.state.value,
            )
            return False
        return True

    def _move_to(self, target: AppState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {target.value} is not allowed")
        logger.debug("State %s -> %s", self.state.value, target.value)
        self.state = target


# Every state change goes through `_move_to`. The public operations guard their
# own preconditions, so reaching the raise here means a caller bypassed them.
ALLOWED_TRANSITIONS: dict[AppState, frozenset[AppState]] = {
    AppState.IDLE: frozenset({AppState.ANALYZING}),
    # ANALYZING -> ANALYZING is a new image replacing an in-flight request.
    AppState.ANALYZING: frozenset({AppState.ANALYZING, AppState.SUCCESS, AppState.ERROR, AppState.IDLE}),
    AppState.SUCCESS: frozenset({AppState.ANALYZING, AppState.IDLE}),
    AppState.ERROR: frozenset({AppState.ANALYZING, AppState.IDLE}),
}
