"""
Command-Line Client.

Typer + Rich front end over the sync layer.
"""
