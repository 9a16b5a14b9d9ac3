"""Pygame front end."""

from .pygame_renderer import PygameRenderer

__all__ = ['PygameRenderer']
