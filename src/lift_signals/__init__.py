"""Exercise rotation, plateau detection and achievements for strength training logs."""

__version__ = "0.1.0"
