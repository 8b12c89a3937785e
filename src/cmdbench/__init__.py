"""cmdbench — benchmark shell commands and compare them statistically."""

__version__ = "0.1.0"
