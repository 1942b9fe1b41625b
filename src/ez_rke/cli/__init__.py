"""ez-rke command line interface."""
