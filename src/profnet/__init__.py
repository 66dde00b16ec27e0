"""profnet — connection graph and messaging engine for a professional network."""

__version__ = "0.1.0"
