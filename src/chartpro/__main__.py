"""Allow running ChartPro with ``python -m chartpro``."""

from .app import main

main()
