"""CLI subcommands for depscout."""
