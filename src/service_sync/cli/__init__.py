"""CLI module for service sync."""
