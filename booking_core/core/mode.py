from __future__ import annotations

import logging

from booking_core.core.config import settings


class SimulatedMode:
    """Runtime switch between the live API and simulated fixture data.

    Consumers receive the bound ``is_enabled`` accessor and call it at the start
    of every action, so toggling takes effect on the next call.
    """

    def __init__(self, enabled: bool | None = None) -> None:
        self._enabled = settings.SIMULATED_MODE if enabled is None else enabled
        self._logger = logging.getLogger(__name__)

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        if enabled != self._enabled:
            self._logger.info("Simulated mode changed", extra={"mode": "simulated" if enabled else "live"})
        self._enabled = enabled
