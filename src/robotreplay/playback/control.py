"""Animation on/off toggle polled by the playback driver."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class AnimationControl:
    """Two-state animate toggle.

    The control only records intent. :class:`~robotreplay.playback.driver.PlaybackDriver`
    reads :meth:`is_checked` on every pump and starts or pauses the clock to
    match, so the control is level-triggered: unchecking from any interaction
    (dragging a joint, starting a brush) converges to paused on the next pump.

    Parameters
    ----------
    checked : bool, default=False
        Initial state.
    """

    def __init__(self, checked: bool = False) -> None:
        self._checked = checked

    def check(self) -> None:
        """Turn animation on."""
        if not self._checked:
            logger.debug("Animation checked")
        self._checked = True

    def uncheck(self) -> None:
        """Turn animation off."""
        if self._checked:
            logger.debug("Animation unchecked")
        self._checked = False

    def toggle(self) -> bool:
        """Flip the state and return the new value."""
        if self._checked:
            self.uncheck()
        else:
            self.check()
        return self._checked

    def is_checked(self) -> bool:
        """Whether animation is on."""
        return self._checked

    def __repr__(self) -> str:
        return f"AnimationControl(checked={self._checked})"


__all__ = ["AnimationControl"]
