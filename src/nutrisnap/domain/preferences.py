"""Display preference models."""

from enum import Enum


class Theme(Enum):
    """Display theme."""

    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "Theme":
        return Theme.DARK if self is Theme.LIGHT else Theme.LIGHT
