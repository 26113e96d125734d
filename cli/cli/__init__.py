"""pipeline-impact command-line interface."""
