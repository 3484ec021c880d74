"""Parts Finder -- browser-driven product search across auto-parts shops."""

__version__ = "1.0.0"
