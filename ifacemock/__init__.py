"""Model Go interfaces from source and remove generated mock files."""

__version__ = "0.1.0"