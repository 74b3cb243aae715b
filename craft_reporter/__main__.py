"""
Entry point for running craft_reporter as a module.

Usage:
    python -m craft_reporter [command] [options]
"""

from craft_reporter.cli import main

if __name__ == "__main__":
    main()
