"""
shotsort - rename and organize screenshots by their contents.

Watches a directory for new screenshots, asks a vision-capable model for a
category and a descriptive name, then moves each file into a category folder.
"""

__version__ = "0.3.0"
