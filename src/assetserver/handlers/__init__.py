"""
Request handlers.

    StaticFileHandler   files under the site root, through the cache
    CacheAdminHandler   the cache-clear route
    ErrorPages          403/404/500 bodies, custom <status>.html or text
"""

from .errors import ErrorPages
from .static import StaticFileHandler
from .cache_admin import CacheAdminHandler

__all__ = [
    "ErrorPages",
    "StaticFileHandler",
    "CacheAdminHandler",
]
