"""skillrelay: multi-turn dialog orchestration with skill delegation and SSO."""

__version__ = "0.1.0"
