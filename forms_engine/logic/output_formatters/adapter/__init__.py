"""Adapter output formats."""
