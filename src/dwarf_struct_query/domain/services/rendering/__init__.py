#!/usr/bin/env python3

"""Rendering services for diagnostics output."""

from .layout_renderer import LayoutRenderer, render_aggregate, render_descriptor, render_value

__all__ = [
    "LayoutRenderer",
    "render_aggregate",
    "render_descriptor",
    "render_value",
]
