"""Allow running as ``python -m dinghy``."""

from dinghy.cli import main

main()
