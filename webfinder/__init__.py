"""Official website finder for Peruvian companies."""

__version__ = "1.0.0"
