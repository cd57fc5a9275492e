from .base import Base
from .context import get_or_create_session

__all__ = ["Base", "get_or_create_session"]
