"""
kioskops package entry point.

Allows running kioskops as a module:
    python -m kioskops
"""

from kioskops.cli import main

if __name__ == "__main__":
    main()
