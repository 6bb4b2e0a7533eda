"""
Package entry point.

Allows running the application via:

    python -m unischedule

This simply forwards execution to unischedule.cli.main().
"""

from unischedule.cli import main

if __name__ == "__main__":
    main()
