from kanban.db.database import get_async_session, init_db

__all__ = ["get_async_session", "init_db"]
