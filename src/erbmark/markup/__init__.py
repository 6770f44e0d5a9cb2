"""Markup scanning primitives: grammar, placeholders, tag stack and output."""
