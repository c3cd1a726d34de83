"""Entry point for running ghdepup as a module.

This allows running the application with:
    python -m ghdepup update DECLARATIONS... VERSIONS
"""

from ghdepup.cli import app

if __name__ == "__main__":
    app()
