"""Main entry point when executing linkpulse as a package.

This allows running the package using python -m linkpulse.
"""

from linkpulse.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
