"""
Entry point for running AEO Visibility as a module.

Enables execution via:
    python -m aeo_visibility [command] [options]

Examples:
    python -m aeo_visibility --help
    python -m aeo_visibility analyze answer.txt --brand Acme
"""

from aeo_visibility.cli import app

if __name__ == "__main__":
    app()
