"""CLI subcommand implementations for depfloor."""
