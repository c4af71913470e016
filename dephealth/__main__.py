"""CLI entry point: python -m dephealth"""

from dephealth.cli import main

main()
