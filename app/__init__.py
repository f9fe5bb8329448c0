"""Medical question assistant backed by an LLM completion endpoint."""

__version__ = "0.1.0"
