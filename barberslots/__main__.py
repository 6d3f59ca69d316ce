"""
Convenience entry point for running barberslots as a module.

Usage: python -m barberslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
