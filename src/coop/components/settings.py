from dataclasses import dataclass


@dataclass(slots=True)
class Settings:
    haptics_enabled: bool = True
    animations_enabled: bool = True
