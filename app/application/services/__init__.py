"""Application services: step template rendering."""

from app.application.services.template_renderer import render, resolve_path

__all__ = ["render", "resolve_path"]
