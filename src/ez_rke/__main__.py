"""Allow running as `python -m ez_rke`."""

from ez_rke.cli.main import main

main()
