"""
ripdiff - Terminal Git Diff Viewer

Renders the output of ``git diff`` with syntax highlighting, intraline
change marks, and unified or side-by-side layouts.

Quick Start:
    pip install -e .
    git diff | ripdiff view
"""

from ripdiff.cli.cli import main

if __name__ == "__main__":
    main()
