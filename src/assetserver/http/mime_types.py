"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to Content-Type values for the assets a small site
ships: markup, styles, scripts, images, fonts and a little media.

=============================================================================
WHY THE TYPE MATTERS HERE
=============================================================================

Beyond telling the browser how to render a file, the base MIME type also
drives two policy decisions elsewhere in the server:

    ┌────────────────────┬────────────────────────────────────────────────┐
    │ Decision           │ Rule                                           │
    ├────────────────────┼────────────────────────────────────────────────┤
    │ Cache-Control      │ text/html → revalidate every time              │
    │                    │ anything else → one year, immutable            │
    ├────────────────────┼────────────────────────────────────────────────┤
    │ Compression        │ only COMPRESSIBLE_TYPES are br/gzip encoded;   │
    │                    │ images and fonts are already compressed        │
    └────────────────────┴────────────────────────────────────────────────┘

Unknown extensions fall back to application/octet-stream, which browsers
download rather than render.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union


MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",    # Source maps
    ".txt": "text/plain",
    ".xml": "application/xml",
    ".webmanifest": "application/manifest+json",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Media
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Other
    ".pdf": "application/pdf",
    ".wasm": "application/wasm",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

# Base types (no parameters) that get br/gzip encoded. Everything else
# is either already compressed (images, fonts, media) or not worth it.
COMPRESSIBLE_TYPES = frozenset({
    "text/html",
    "text/css",
    "text/javascript",
    "application/javascript",
    "application/json",
    "image/svg+xml",
    "text/plain",
})

_TEXT_APPLICATION_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/javascript",
    "application/manifest+json",
    "image/svg+xml",
})


def get_mime_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Examples:
        >>> get_mime_type("style.css")
        'text/css'
        >>> get_mime_type("/site/LOGO.PNG")
        'image/png'
        >>> get_mime_type("archive.xyz")
        'application/octet-stream'
    """
    extension = Path(path).suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    """Check whether a MIME type is text and should carry a charset."""
    return mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES


def get_content_type(path: Union[str, Path], charset: str = "utf-8") -> str:
    """
    Full Content-Type header value for a file.

        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("logo.png")
        'image/png'
    """
    mime_type = get_mime_type(path)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type


def base_type(content_type: str) -> str:
    """
    Strip parameters from a Content-Type value.

        >>> base_type("text/html; charset=utf-8")
        'text/html'
    """
    return content_type.split(";", 1)[0].strip().lower()
