"""profile-readme-stats: regenerate a GitHub profile README."""

__version__ = "0.1.0"
