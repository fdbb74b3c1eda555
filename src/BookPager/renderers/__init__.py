"""Renderers for book pages.

JSON renderers build the display payload returned with every reply; console
renderers format the same books for the command-line front end.
"""

from __future__ import annotations

from BookPager.renderers.console import render_detail, render_text
from BookPager.renderers.json import render_book, render_json, serialize_book, serialize_page

__all__ = [
    "render_book",
    "render_detail",
    "render_json",
    "render_text",
    "serialize_book",
    "serialize_page",
]
