"""
plugbridge - install AI CLI extensions across Claude Code, Codex and Gemini CLI.
"""

__version__ = "0.3.0"
