"""Backends for rendering UPLC terms as text."""

from .printer import render_compact, render_pretty, render_program

__all__ = ["render_compact", "render_pretty", "render_program"]
