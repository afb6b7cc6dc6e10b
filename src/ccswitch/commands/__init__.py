"""CLI command modules registered on the main Typer app."""
