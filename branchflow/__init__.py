"""Branch, commit and pull request workflow policy for Frappe app repositories."""

__version__ = "0.1.0"
