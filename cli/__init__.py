"""Command-line surface for Snippet Store.

Updates: v0.1.0 - 2026-10-14 - Package marker for CLI modules.
"""
