from brickvest.db.engine import close_db, get_db, get_session, init_db

__all__ = ["close_db", "get_db", "get_session", "init_db"]
