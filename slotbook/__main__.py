"""
Package entry point.

Allows running the application via:

    python -m slotbook

This simply forwards execution to slotbook.cli.main().
"""

from slotbook.cli import main

if __name__ == "__main__":
    main()
