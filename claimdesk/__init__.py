"""ClaimDesk package."""

__all__ = [
    "cli",
    "config",
    "controller",
    "errors",
    "filtering",
    "observability",
    "presentation",
    "schemas",
    "services",
    "web_app",
]
