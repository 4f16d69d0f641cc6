"""docintel: duplicate detection and relevance checks for uploaded documents."""

from docintel.version import __version__

__all__ = ["__version__"]
