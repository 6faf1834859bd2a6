"""Main entry point for the osswish CLI.

Usage:
    python -m osswish.main --help
    osswish --help  # If installed via pip/uv
"""

from osswish.cli import main

if __name__ == "__main__":
    main()
