"""Document module for turning uploaded files into page images."""

from .pages import DocumentPage, load_pages

__all__ = ["DocumentPage", "load_pages"]
