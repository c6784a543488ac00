"""
stud CLI entry point for module execution.

Allows running stud as: python -m stud
"""

from stud.cli.main import cli_main

if __name__ == "__main__":
    cli_main()
