from .document import parse_document
from .serializer import render_lines, serialize_project
from .tags import ExtractedTags, compose_tags, extract_tags

__all__ = [
    "parse_document",
    "render_lines",
    "serialize_project",
    "ExtractedTags",
    "compose_tags",
    "extract_tags",
]
