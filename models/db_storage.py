from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from models.base_model import Base
from models.user import User

# Map model names for easy querying
classes = {
    "User": User,
}


class DBStorage:
    __engine = None
    __session = None

    def __init__(self, database_url: str, timeout: float | None = None, echo: bool = False):
        """
        Initialize engine from a database URL.
        timeout bounds every store call: the busy timeout on SQLite, the
        statement and pool checkout timeouts elsewhere (PostgreSQL).
        """
        engine_kwargs = {"echo": echo}
        connect_args = {}
        is_sqlite = database_url.startswith("sqlite")

        if is_sqlite:
            # one scoped session per request thread, each with its own connection
            connect_args["check_same_thread"] = False
            if timeout:
                connect_args["timeout"] = timeout
        else:
            engine_kwargs["pool_pre_ping"] = True
            if timeout:
                connect_args["options"] = f"-c statement_timeout={int(timeout * 1000)}"
                engine_kwargs["pool_timeout"] = timeout

        self.__engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

        if is_sqlite:
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        Session = scoped_session(session_factory)
        self.__session = Session

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values():
            return self.__session.get(cls, id)
        return None

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def dispose(self):
        self.close()
        self.__engine.dispose()

    # expose the SQLAlchemy session for statements the helpers above don't cover
    def get_session(self):
        return self.__session
