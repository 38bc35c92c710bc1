from market_chat.config.database.mongo import MongoDB
from market_chat.config.database.postgresql import Base, PostgreSQL

__all__ = ["Base", "MongoDB", "PostgreSQL"]
