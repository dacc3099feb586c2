"""ripdiff - terminal viewer for git diffs."""

__version__ = "0.1.0"
