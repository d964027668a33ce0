"""Command-line subcommands for scanprep."""
