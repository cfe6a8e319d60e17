"""
=============================================================================
MIME TYPES
=============================================================================

Maps file extensions to Content-Type values for cached content.

Each cached file gets exactly ONE Content-Type, decided at load time:

    style.css   ──►  text/css; charset=utf-8
    logo.png    ──►  image/png
    README      ──►  ""            (no extension: header is omitted)

Lookup order:

    1. MIME_TYPES below (the common web types, predictable everywhere)
    2. the platform's mimetypes database (less common extensions)
    3. "" (unknown)

Unknown types are an empty string rather than application/octet-stream
so that the handler can leave the header out and let the client sniff.

=============================================================================
"""

import mimetypes
from pathlib import PurePosixPath
from typing import Union


MIME_TYPES = {
    # text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",

    # fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # media
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # other
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".wasm": "application/wasm",
    ".map": "application/json",
}

# application/* types that are really text and get a charset parameter
TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
}


def get_mime_type(path: Union[str, PurePosixPath]) -> str:
    """
    Get the bare MIME type for a path from its extension.

    Returns:
        The MIME type, or "" when the extension is unknown.

    Examples:
        >>> get_mime_type("/blog/index.html")
        'text/html'
        >>> get_mime_type("LICENSE")
        ''
    """
    extension = PurePosixPath(str(path)).suffix.lower()
    if not extension:
        return ""

    if extension in MIME_TYPES:
        return MIME_TYPES[extension]

    guessed, _ = mimetypes.guess_type("file" + extension, strict=False)
    return guessed or ""


def is_text_type(mime_type: str) -> bool:
    """Check whether a MIME type is text and should carry a charset."""
    return mime_type.startswith("text/") or mime_type in TEXT_APPLICATION_TYPES


def type_by_extension(path: Union[str, PurePosixPath], charset: str = "utf-8") -> str:
    """
    Get the full Content-Type value for a cached file.

    Text types get a charset parameter; binary types are returned bare;
    unknown extensions give "".

        >>> type_by_extension("about.html")
        'text/html; charset=utf-8'
        >>> type_by_extension("logo.png")
        'image/png'
        >>> type_by_extension("blob.unknownext")
        ''
    """
    mime_type = get_mime_type(path)
    if mime_type and is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
