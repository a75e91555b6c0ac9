from functools import wraps
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from mhpbilling import config


log = logging.getLogger(__name__)

engine = session = session_factory = None


def init(connstr=None,
         application_name="mhpbilling",
         statement_timeout=60000):
    """Initialize the ORM for this process.

    PostgreSQL connections are created and destroyed as they're needed, rather than shared in a
    pool. SQLite (the default, and what the tests use) shares a single connection so that an
    in-memory database survives between sessions.
    """
    global engine, session, session_factory
    if not connstr:
        connstr = config.DATABASE_URL

    kwargs = {"echo": config.DATABASE_ECHO}
    if connstr.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["connect_args"] = {
            "options": "-c statement_timeout={}".format(statement_timeout),
            "application_name": application_name
        }
        kwargs["poolclass"] = NullPool

    if engine is None or session is None or session_factory is None:
        engine = create_engine(connstr, **kwargs)
        session_factory = sessionmaker(bind=engine)
        session = scoped_session(session_factory)


def dispose():
    """Tear down the engine and session so the next init() starts fresh."""
    global engine, session, session_factory
    if session is not None:
        session.remove()
    if engine is not None:
        engine.dispose()
    engine = session = session_factory = None


def dbtask(fn=None, commit_on_fail=False, **conn_options):
    """Initialize and tear down a database transaction around a single function call.

    Example:
    @dbtask
    def fn1(*args, **kwargs):
        ...

    @dbtask(application_name="mhpbilling.run")
    def fn2(*args, **kwargs):
        ...

    Optionally allows for committing transaction on exception, rather than
    rolling back, via `commit_on_fail=True`
    """
    # With keyword args the decorator does not receive the function, so return a
    # decorator that does and closes over the options.
    if not fn:
        def _partial(_fn):
            return dbtask(_fn, commit_on_fail=commit_on_fail, **conn_options)

        return _partial

    @wraps(fn)
    def _decorated(*args, **kwargs):
        opts = dict()
        opts.update(**conn_options)
        init(**opts)

        try:
            rval = fn(*args, **kwargs)

            if not config.UNDER_TEST:
                log.debug("Committing transaction.")
                session.commit()

            return rval

        except Exception:
            if commit_on_fail:
                if not config.UNDER_TEST:
                    log.debug("Committing transaction with an exception.")
                    session.commit()
            else:
                log.debug("Aborting and rolling back DB transaction.")
                session.rollback()
            raise

        finally:
            if not config.UNDER_TEST:
                log.debug("Closing DB session.")
                session.close()

    return _decorated
