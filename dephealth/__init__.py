"""dephealth: find outdated and vulnerable dependencies and apply safe updates."""

__version__ = "0.1.0"
