"""Pure Storage FlashArray capacity and performance collector."""

__version__ = '0.1.0'
