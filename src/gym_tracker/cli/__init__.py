"""Typer command-line client."""
