"""Deploy bootstrap: SSH key material and remote deployment helpers."""

__version__ = "0.1.0"
