"""
Completion request orchestration.

Debounces editor requests, checks that the Ollama service is usable, runs the
context → prompt → generate → cleanup pipeline and decides what (if anything)
goes back to the editor. Runs on the asyncio loop (qasync in the app), so all
state below is touched from a single thread.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from ai.completion import (
    build_completion_prompt,
    clean_suggestion,
    count_significant_chars,
    extract_context,
)
from ai.document import Position, TextDocument
from ai.providers.ollama import Availability, OllamaClient, ServiceConfig

logger = logging.getLogger(__name__)

# Quiet period before a request is acted on (seconds)
DEBOUNCE_DELAY = 0.5

# Non-whitespace characters required before the cursor
MIN_PREFIX_CHARS = 5


class ServiceStatus(Enum):
    """Service state shown in the status bar."""

    STARTING = "starting..."
    CHECKING = "checking..."
    READY = "ready"
    MODEL_NOT_FOUND = "model not found"
    OFFLINE = "offline"
    GENERATING = "generating..."
    ERROR = "error"

    @property
    def label(self) -> str:
        return self.value


# Every state may also go back to CHECKING
_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    ServiceStatus.STARTING: frozenset(),
    ServiceStatus.CHECKING: frozenset(
        {ServiceStatus.READY, ServiceStatus.MODEL_NOT_FOUND, ServiceStatus.OFFLINE}
    ),
    ServiceStatus.READY: frozenset({ServiceStatus.GENERATING}),
    ServiceStatus.MODEL_NOT_FOUND: frozenset(),
    ServiceStatus.OFFLINE: frozenset(),
    ServiceStatus.GENERATING: frozenset({ServiceStatus.READY, ServiceStatus.ERROR}),
    ServiceStatus.ERROR: frozenset(),
}

_AVAILABILITY_STATUS = {
    Availability.READY: ServiceStatus.READY,
    Availability.MODEL_NOT_FOUND: ServiceStatus.MODEL_NOT_FOUND,
    Availability.OFFLINE: ServiceStatus.OFFLINE,
}


def is_expected_transition(current: ServiceStatus, new: ServiceStatus) -> bool:
    """Check a status change against the state machine."""
    return new is ServiceStatus.CHECKING or new in _TRANSITIONS[current]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback later; asyncio loops qualify."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class CompletionHost(Protocol):
    """Capabilities the orchestrator needs from the editor integration."""

    def show_error(self, message: str) -> None: ...

    def status_changed(self, status: ServiceStatus, model: str) -> None: ...


class CancellationToken:
    """Flag the host sets when a request has been superseded."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class Suggestion:
    """A cleaned suggestion anchored at the cursor it was requested for."""

    text: str
    position: Position

    @property
    def range(self) -> tuple[Position, Position]:
        """Replacement range, always empty (pure insertion)."""
        return (self.position, self.position)


@dataclass
class CompletionState:
    """Mutable orchestrator state. Change it only through the methods below."""

    status: ServiceStatus = ServiceStatus.STARTING
    pending_timer: TimerHandle | None = None
    pending_position: Position | None = None
    last_position: Position | None = None
    epoch: int = 0
    _waiter: asyncio.Future | None = field(default=None, repr=False)

    def transition(self, status: ServiceStatus) -> bool:
        """Move to a new status. Returns False if the status did not change."""
        if status is self.status:
            return False
        if not is_expected_transition(self.status, status):
            logger.debug("Unexpected status transition %s -> %s", self.status.name, status.name)
        self.status = status
        return True

    def schedule(self, handle: TimerHandle, position: Position, waiter: asyncio.Future) -> int:
        """Record a new pending timer and return the epoch it belongs to."""
        self.pending_timer = handle
        self.pending_position = position
        self.last_position = position
        self._waiter = waiter
        self.epoch += 1
        return self.epoch

    def fire(self) -> None:
        """The pending timer elapsed."""
        waiter = self._waiter
        self.pending_timer = None
        self.pending_position = None
        self._waiter = None
        if waiter is not None and not waiter.done():
            waiter.set_result(True)

    def cancel_timer(self) -> bool:
        """Drop the pending timer. Its waiting request resolves to no suggestion."""
        if self.pending_timer is None:
            return False
        self.pending_timer.cancel()
        waiter = self._waiter
        self.pending_timer = None
        self.pending_position = None
        self._waiter = None
        if waiter is not None and not waiter.done():
            waiter.set_result(False)
        return True

    def invalidate(self) -> None:
        """Make every in-flight request stale."""
        self.epoch += 1


class CompletionOrchestrator:
    """Turns editor completion requests into at most one suggestion each.

    Only one debounce timer is live at a time; a new request replaces it.
    Generation calls are never aborted, but results of superseded requests
    are dropped before they reach the editor.
    """

    def __init__(
        self,
        config: ServiceConfig,
        client: OllamaClient | None = None,
        host: CompletionHost | None = None,
        scheduler: Scheduler | None = None,
        debounce_delay: float = DEBOUNCE_DELAY,
    ):
        self._config = config
        self._client = client or OllamaClient()
        self._host = host
        self._scheduler = scheduler
        self._debounce_delay = debounce_delay
        self._state = CompletionState()
        self._disposed = False
        self._generating = 0

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def status(self) -> ServiceStatus:
        return self._state.status

    @property
    def state(self) -> CompletionState:
        return self._state

    # ─── Status ───

    def _set_status(self, status: ServiceStatus) -> None:
        if self._state.transition(status) and self._host is not None:
            self._host.status_changed(status, self._config.model)

    def _notify(self, message: str) -> None:
        if self._host is not None:
            self._host.show_error(message)

    async def activate(self) -> ServiceStatus:
        """Run the first availability check."""
        logger.info("Activating completion for %s at %s", self._config.model, self._config.host)
        return await self.check_status()

    async def check_status(self) -> ServiceStatus:
        """Check the service and model, updating status and notifying on problems."""
        self._set_status(ServiceStatus.CHECKING)
        config = self._config
        availability = await self._client.check_availability(config)

        if availability is Availability.MODEL_NOT_FOUND:
            self._notify(
                f"Model {config.model} not found. Please run: ollama pull {config.model}"
            )
        elif availability is Availability.OFFLINE:
            self._notify(
                f"Ollama service not available at {config.host}. "
                "Please make sure Ollama is running."
            )

        status = _AVAILABILITY_STATUS[availability]
        self._set_status(status)
        return status

    async def update_config(self, config: ServiceConfig) -> ServiceStatus:
        """Replace the service config and re-check availability."""
        logger.info("Service config changed: %s @ %s", config.model, config.host)
        self._config = config
        self._state.invalidate()
        return await self.check_status()

    # ─── Requests ───

    async def request(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationToken | None = None,
    ) -> Suggestion | None:
        """Handle one editor completion request.

        Args:
            document: Live document (read again when the debounce fires)
            position: Cursor position the request was made for
            token: Host cancellation flag for this request

        Returns:
            A Suggestion anchored at position, or None.
        """
        if self._disposed or not 0 <= position.line < document.line_count:
            return None

        line_text = document.line_at(position.line)
        if count_significant_chars(line_text[: position.character]) < MIN_PREFIX_CHARS:
            return None

        state = self._state
        had_pending = state.cancel_timer()

        # Redundant event at the spot we already handled
        if not had_pending and position == state.last_position:
            logger.debug("Suppressing duplicate request at %s", position)
            return None

        loop = asyncio.get_running_loop()
        scheduler = self._scheduler or loop
        waiter = loop.create_future()
        handle = scheduler.call_later(self._debounce_delay, state.fire)
        epoch = state.schedule(handle, position, waiter)

        if not await waiter:
            return None

        if token is not None and token.is_cancellation_requested:
            logger.debug("Request at %s cancelled during debounce", position)
            return None

        return await self._complete(document, position, token, epoch)

    def _is_current(self, epoch: int, token: CancellationToken | None) -> bool:
        if token is not None and token.is_cancellation_requested:
            return False
        return epoch == self._state.epoch and not self._disposed

    @staticmethod
    def _in_document(document: TextDocument, position: Position) -> bool:
        """The position still exists in the (possibly edited) document."""
        if not 0 <= position.line < document.line_count:
            return False
        return 0 <= position.character <= len(document.line_at(position.line))

    async def _complete(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationToken | None,
        epoch: int,
    ) -> Suggestion | None:
        """Run check → context → prompt → generate → cleanup for a fired request."""
        try:
            if await self.check_status() is not ServiceStatus.READY:
                return None

            # Document replaced or shrunk since the request was made
            if not self._in_document(document, position):
                logger.debug("Position %s no longer in document, skipping", position)
                return None

            self._set_status(ServiceStatus.GENERATING)
            self._generating += 1
            try:
                window = extract_context(document, position)
                language_id = document.language_id
                prompt = build_completion_prompt(
                    language_id, window.preceding_text, window.current_line, window.following_text
                )

                logger.info("Generating completion for language: %s", language_id)
                logger.debug("Context:\n%s", window.preceding_text)
                logger.debug(
                    "Current line: %s|cursor|%s",
                    window.current_line[: position.character],
                    window.current_line[position.character :],
                )

                raw = await self._client.generate_completion(self._config, prompt)
                logger.info("Raw suggestion: %r", raw)
            finally:
                self._generating -= 1

            current = self._is_current(epoch, token)
            # A superseded generation must not overwrite a newer request's status
            if current or (self._generating == 0 and self.status is ServiceStatus.GENERATING):
                self._set_status(ServiceStatus.READY)

            if not current:
                logger.debug("Dropping stale suggestion for %s", position)
                return None
            if not self._in_document(document, position):
                logger.debug("Position %s no longer in document, dropping suggestion", position)
                return None

            text_before_cursor = document.line_at(position.line)[: position.character]
            text = clean_suggestion(raw, text_before_cursor)
            if not text:
                return None
            return Suggestion(text, position)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("Error getting completion: %s", message, exc_info=True)
            self._notify(f"Ollama completion error: {message}")
            self._set_status(ServiceStatus.ERROR)
            return None

    def dispose(self) -> None:
        """Cancel the pending timer and ignore anything still in flight."""
        self._disposed = True
        self._state.cancel_timer()
        self._state.invalidate()
