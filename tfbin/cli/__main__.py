"""
Entry point for running tfbin CLI as a module.

Usage: python -m tfbin.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
