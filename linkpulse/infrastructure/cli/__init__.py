"""Console adapters for the command-line interface."""
