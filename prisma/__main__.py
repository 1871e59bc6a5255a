"""
Main Entry Point for prisma
===========================

Entry point when prisma is called as a module:
    python -m prisma [args...] measurements.txt
"""

from prisma.cli.main import main

if __name__ == "__main__":
    main()
