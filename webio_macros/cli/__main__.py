"""
Main entry point for the webio-macros CLI when run as a module.

This allows the CLI to be executed using:
    python -m webio_macros.cli

or the equivalent console script entry point.
"""

from . import main

if __name__ == '__main__':
    main()
