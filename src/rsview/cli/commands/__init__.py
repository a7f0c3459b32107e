from . import analyze, info, render, sanitize, status

__all__ = ["analyze", "info", "render", "sanitize", "status"]
