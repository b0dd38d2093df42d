# src/gitsops/__init__.py: Transparent sops encryption for git.

__version__ = "0.1.0"
