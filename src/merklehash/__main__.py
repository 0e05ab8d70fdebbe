"""Allow ``python -m merklehash``."""

from .cli import main

main()
