"""Enumeration types for r2r-research models."""

from enum import Enum


class Tier(str, Enum):
    """Collection scope level."""

    UNIVERSAL = "universal"
    TECH_STACK = "tech-stack"
    PROJECT = "project"


class OutputFormat(str, Enum):
    """Rendering format for command output."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class LogFormat(str, Enum):
    """Log renderer."""

    CONSOLE = "console"
    JSON = "json"
