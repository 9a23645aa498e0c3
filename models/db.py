from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event

db = SQLAlchemy()


def use_immediate_transactions(engine):
    """
    pysqlite only sends BEGIN before the first write, so the reads of a
    check-then-insert run unlocked. Take SQLite's write lock when the
    transaction starts instead (SQLAlchemy's pysqlite transaction recipe).
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
