"""Servo that shows the plant's mood as an angle."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

MIN_ANGLE = 0
MAX_ANGLE = 180


class EmotionalServo:
    """Hobby servo with named happy, sad and neutral positions."""

    def __init__(
        self,
        write_angle: Callable[[int], None],
        happy_angle: int,
        sad_angle: int,
        neutral_angle: int,
    ) -> None:
        self._write_angle = write_angle
        self.happy_angle = happy_angle
        self.sad_angle = sad_angle
        self.neutral_angle = neutral_angle
        self.current_angle = neutral_angle
        self.attached = False

    def attach(self) -> None:
        """Start driving the servo and move it to the remembered angle."""
        self.attached = True
        self.set_angle(self.current_angle)

    def set_happy(self) -> None:
        self.set_angle(self.happy_angle)

    def set_sad(self) -> None:
        self.set_angle(self.sad_angle)

    def set_neutral(self) -> None:
        self.set_angle(self.neutral_angle)

    def set_angle(self, angle: int) -> None:
        """Move to ``angle``, limited to the servo's 0-180 degree travel."""
        self.current_angle = min(max(int(angle), MIN_ANGLE), MAX_ANGLE)
        if self.attached:
            self._write_angle(self.current_angle)
        logger.info("Servo angle set to: %d", self.current_angle)