"""Tests for engine setup, table verification and the session scope."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.orm import sessionmaker

from salon_tracker.models import Client, Oxidant
from salon_tracker.services import database
from salon_tracker.services.database import (
    REQUIRED_TABLES,
    close_connections,
    create_database_engine,
    init_database,
    missing_tables,
    reset_database,
    session_scope,
    verify_database,
)

OWNER = "owner-1"


@pytest.fixture
def memory_engine():
    engine = create_database_engine("sqlite:///:memory:")
    yield engine
    engine.dispose()


def test_empty_database_misses_every_table(memory_engine):
    assert missing_tables(memory_engine) == list(REQUIRED_TABLES)
    assert verify_database(memory_engine) is False


def test_init_database_creates_recipe_tree_tables(memory_engine):
    init_database(memory_engine)
    assert missing_tables(memory_engine) == []
    assert verify_database(memory_engine) is True


def test_foreign_keys_enforced(memory_engine):
    with memory_engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_reset_requires_confirmation(memory_engine):
    with pytest.raises(ValueError):
        reset_database(engine=memory_engine)


def test_reset_recreates_tables(memory_engine):
    init_database(memory_engine)
    reset_database(confirm=True, engine=memory_engine)
    assert set(REQUIRED_TABLES) <= set(inspect(memory_engine).get_table_names())


class TestSessionScope:
    def test_commits_on_success(self, test_db):
        with session_scope() as session:
            session.add(Oxidant(owner_id=OWNER, name="6%"))
        assert test_db().query(Oxidant).count() == 1

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Client(owner_id=OWNER, first_name="Eva", last_name="Mala"))
                session.flush()
                raise RuntimeError("abort")
        assert test_db().query(Client).count() == 0

    def test_uses_patched_factory(self, test_db):
        assert database.get_session_factory() is test_db


class TestCloseConnections:
    def test_disposes_engine_and_forgets_factory(self, monkeypatch, memory_engine):
        factory = sessionmaker(bind=memory_engine)
        monkeypatch.setattr(database, "_engine", memory_engine)
        monkeypatch.setattr(database, "_SessionFactory", factory)
        session = factory()
        session.add(Oxidant(owner_id=OWNER, name="6%"))

        close_connections()

        assert database._engine is None
        assert database._SessionFactory is None
        assert session.new == set()

    def test_nothing_open_is_a_no_op(self, monkeypatch):
        monkeypatch.setattr(database, "_engine", None)
        monkeypatch.setattr(database, "_SessionFactory", None)

        close_connections()

        assert database._engine is None
        assert database._SessionFactory is None
