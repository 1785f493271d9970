"""Weather symbol tables mapping SMHI Wsymb2 codes to icon files."""
from dataclasses import dataclass
from typing import Dict, Optional

TYPES = 27
EXTENSION = ".png"


@dataclass(frozen=True)
class WeatherType:
    id: int
    file_name: str


def _build_table(folder: str) -> Dict[int, WeatherType]:
    return {
        code: WeatherType(id=code, file_name=f"{folder}/{code}{EXTENSION}")
        for code in range(1, TYPES + 1)
    }


DAY_TYPES: Dict[int, WeatherType] = _build_table("day")
# Night symbols share the day artwork
NIGHT_TYPES: Dict[int, WeatherType] = _build_table("day")


def lookup(code: int, is_day: bool) -> Optional[WeatherType]:
    """Return the weather type for a code, or None if the code is unknown."""
    table = DAY_TYPES if is_day else NIGHT_TYPES
    return table.get(code)
