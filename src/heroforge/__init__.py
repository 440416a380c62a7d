"""heroforge: derived statistics, weapon resolution and advancement for tabletop heroes."""

__version__ = "0.1.0"
