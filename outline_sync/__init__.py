"""Two-way sync between an Outline workspace and a local Markdown tree."""

__version__ = "0.2.5"
