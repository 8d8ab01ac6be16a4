"""Swipe gesture interpretation (core domain).

A drag gesture's horizontal offset is turned into exactly one of three
actions at release time. Button presses reuse the same callbacks, so a
swipe and a button click always have the same effect.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

LOGGER = logging.getLogger(__name__)

ACTION_NONE = "none"
ACTION_LIKE = "like"
ACTION_REJECT = "reject"

DEFAULT_THRESHOLD = 100.0


def _interpolate(value: float, low: float, high: float, out_low: float, out_high: float) -> float:
    """Map value from [low, high] onto [out_low, out_high], clamped."""

    if value <= low:
        return out_low
    if value >= high:
        return out_high
    ratio = (value - low) / (high - low)
    return out_low + ratio * (out_high - out_low)


def interpret_offset(offset: float, threshold: float = DEFAULT_THRESHOLD) -> str:
    """Return the action encoded by a release offset."""

    if offset > threshold:
        return ACTION_LIKE
    if offset < -threshold:
        return ACTION_REJECT
    return ACTION_NONE


class SwipeHandler:
    """Track one card's drag gesture and fire like/reject on release."""

    def __init__(
        self,
        on_like: Callable[[], Awaitable[None]],
        on_reject: Callable[[], None],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self._on_like = on_like
        self._on_reject = on_reject
        self._threshold = threshold
        self._offset = 0.0
        self._released = False

    @property
    def offset(self) -> float:
        return self._offset

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def rotation(self) -> float:
        """Card tilt in degrees."""
        return _interpolate(self._offset, -200.0, 200.0, -15.0, 15.0)

    @property
    def like_opacity(self) -> float:
        return _interpolate(self._offset, 0.0, 150.0, 0.0, 1.0)

    @property
    def reject_opacity(self) -> float:
        return _interpolate(self._offset, -150.0, 0.0, 1.0, 0.0)

    def begin(self) -> None:
        """Start a new gesture."""

        self._offset = 0.0
        self._released = False

    def on_drag(self, offset: float) -> None:
        if self._released:
            return
        self._offset = offset

    async def on_released(self, offset: float) -> str:
        """Finish the gesture and run the action it encodes.

        A second release for the same gesture is ignored and returns
        ACTION_NONE; call begin() before the next gesture.
        """

        if self._released:
            LOGGER.debug("Ignoring repeated release at offset %s", offset)
            return ACTION_NONE
        self._released = True
        self._offset = offset

        action = interpret_offset(offset, self._threshold)
        if action == ACTION_NONE:
            # Spring back; the card stays where it is.
            self._offset = 0.0
        elif action == ACTION_LIKE:
            await self._on_like()
        else:
            self._on_reject()
        return action

    async def like(self) -> str:
        """Button equivalent of a right swipe."""

        return await self.on_released(self._threshold + 1)

    async def reject(self) -> str:
        """Button equivalent of a left swipe."""

        return await self.on_released(-(self._threshold + 1))
