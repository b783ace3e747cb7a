"""
Utility functions and helpers.

Modules:
- logging: Logging configuration
- progress: Console status and summary output
- templates: SQL template loading and rendering
"""
