"""GHDEPUP - Resolve dependency versions from GitHub tags.

This package provides a Python CLI application that lists the tags of
GitHub repositories, picks the best semantic version for every declared
dependency and writes the result into a versions file that is valid as a
shell script, an INI file and a Makefile at the same time.
"""

__version__ = "1.0.0"
SCRIPT_NAME = "GHDEPUP"

__all__ = [
    "__version__",
    "SCRIPT_NAME",
]
