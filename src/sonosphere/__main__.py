"""Allow ``python -m sonosphere``."""

from sonosphere.cli import main

main()
