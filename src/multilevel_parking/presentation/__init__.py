"""Presentation layer: console rendering."""
