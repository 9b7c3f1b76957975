"""Display preference service."""

import logging
from dataclasses import dataclass

from nutrisnap.domain.preferences import Theme
from nutrisnap.services.entries import KeyValueStore

THEME_KEY = "nutrisnap_theme"

_logger = logging.getLogger(__name__)


@dataclass
class PreferenceService:
    """Service for the persisted display theme."""

    storage: KeyValueStore
    key: str = THEME_KEY

    def theme(self) -> Theme:
        """Return the stored theme, light when unset or unrecognized."""
        raw = self.storage.get(self.key)
        if raw is None:
            return Theme.LIGHT
        try:
            return Theme(raw)
        except ValueError:
            _logger.warning("Ignoring unknown theme %r", raw)
            return Theme.LIGHT

    def set_theme(self, theme: Theme) -> None:
        """Persist the display theme."""
        self.storage.set(self.key, theme.value)

    def toggle_theme(self) -> Theme:
        """Switch between light and dark and return the new theme."""
        theme = self.theme().toggled()
        self.set_theme(theme)
        return theme
