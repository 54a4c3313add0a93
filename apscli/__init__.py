"""apscli: terminal dashboard wrapping PowerShell with completion and slash commands."""

__version__ = "0.1.0"
