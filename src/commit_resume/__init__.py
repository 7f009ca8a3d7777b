"""Resume content generation from GitHub commit history."""

__version__ = "0.1.0"
