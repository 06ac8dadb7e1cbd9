"""agentmesh - coordinate pluggable code analysis agents."""

__version__ = "1.0.0"
