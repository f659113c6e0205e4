# billing/db/engine.py

from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from billing.config import database_url


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    # echo=True if you want to see SQL printed in the terminal
    url = database_url()
    engine = create_engine(url, future=True)

    if engine.dialect.name == "sqlite":
        # SQLite ignores foreign keys unless asked, per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine
