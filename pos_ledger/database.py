"""Database handle and initialization."""
import atexit
import logging
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import BigInteger, Integer, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


class Database:
    """
    Explicit handle over the SQLAlchemy engine and session factory.

    The engine is created on first use and disposed by ``close()``. Every
    write path in the ledger runs inside ``unit_of_work()``, which yields one
    Session and commits or rolls back exactly once.
    """

    def __init__(self, uri: str, echo: bool = False, **engine_options):
        self.uri = uri
        self.echo = echo
        self.engine_options = engine_options
        self._engine = None
        self._session_factory = None

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith('sqlite')

    @property
    def engine(self):
        if self._engine is None:
            self.open()
        return self._engine

    def open(self):
        """Create the engine and session factory if not already open."""
        if self._engine is not None:
            return self._engine

        options = dict(self.engine_options)
        if self.is_sqlite:
            options.setdefault('connect_args', {'check_same_thread': False})
            if self.uri in ('sqlite://', 'sqlite:///:memory:'):
                # In-memory databases live only as long as their connection
                options.setdefault('poolclass', StaticPool)
        else:
            options.setdefault('pool_pre_ping', True)  # Enable connection health checks
            options.setdefault('pool_size', 10)
            options.setdefault('max_overflow', 20)

        self._engine = create_engine(self.uri, echo=self.echo, **options)
        if self.is_sqlite:
            event.listen(self._engine, 'connect', _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Database engine opened (%s)", self._engine.url.render_as_string(hide_password=True))
        return self._engine

    def close(self):
        """Dispose the engine; the handle can be reopened later."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine closed")

    def session(self):
        """Return a new Session bound to this database."""
        if self._session_factory is None:
            self.open()
        return self._session_factory()

    @contextmanager
    def unit_of_work(self):
        """
        Yield a Session for one atomic unit of work.

        Commits when the block exits normally; on any exception the whole
        transaction is rolled back and the exception propagates.
        """
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self):
        """Create all tables known to the declarative Base."""
        import pos_ledger.models  # noqa: F401  (register mappers)
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        import pos_ledger.models  # noqa: F401
        Base.metadata.drop_all(self.engine)


def init_db(app):
    """Initialize the database handle for a Flask app."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
    )
    app.extensions['database'] = database

    # Close the engine on application shutdown
    atexit.register(database.close)
    return database


def get_database() -> Database:
    """Get the database handle of the current Flask app."""
    return current_app.extensions['database']
