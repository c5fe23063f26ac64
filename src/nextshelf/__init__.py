"""NextShelf - "continue watching" lists and box-set collapsing for media libraries."""

from nextshelf._version import __version__

__all__ = ["__version__"]
