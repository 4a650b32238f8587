"""
Entry point for running tfbin as a module.

Usage: python -m tfbin [command] [options]
"""

from tfbin.cli.parser import main

if __name__ == "__main__":
    main()
