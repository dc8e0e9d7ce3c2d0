from sitedirectory.core.config import settings
from sitedirectory.core.database import Base, get_engine, get_session_local

__all__ = ["settings", "Base", "get_engine", "get_session_local"]
