"""Display settings shared by the refresh service and its consumers."""
from dataclasses import dataclass
from enum import Enum


class SettingsField(Enum):
    """Identifies which toggle changed in a SettingsUpdated event."""
    METRIC = "metric"
    PRECISION = "precision"
    DARK_MODE = "dark_mode"


@dataclass
class Settings:
    """Mutable display configuration: unit system, precision and theme."""
    metric: bool = True
    precision: bool = False
    dark_mode: bool = True

    def toggle(self, field: SettingsField) -> bool:
        """Flip one setting in place and return its new value."""
        new_value = not getattr(self, field.value)
        setattr(self, field.value, new_value)
        return new_value
