"""
Form Scoring & Access Engine.

Scores form submissions against configured ranges and decides who may view,
edit or respond to a form.
"""

__version__ = "1.0.0"
