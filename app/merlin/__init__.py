"""merlin - Declarative dotfiles management for macOS."""

__version__ = "0.3.0"
