"""Fakes standing in for SQLAlchemy engines and connections."""

from __future__ import annotations

import threading
import time
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from libs.metric_store import ConfigurationState, ConnectionProvisioner, LevelGenerator


class FakeConnection:
    """Record executed statements the way a SQLAlchemy connection would run them."""

    def __init__(self, engine: "FakeEngine", *, fail_on: str | None = None) -> None:
        self.engine = engine
        self.fail_on = fail_on
        self.executed: list[tuple[str, dict[str, Any] | None]] = []
        self.commits = 0
        self.closed = False

    def execute(self, statement: Any, params: dict[str, Any] | None = None) -> None:
        sql = str(statement)
        self.executed.append((sql, params))
        if self.fail_on is not None and sql.startswith(self.fail_on):
            raise ProgrammingError(sql, params, Exception(1146, "Table doesn't exist"))

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        self.closed = True


class FakeEngine:
    def __init__(self, factory: "RecordingEngineFactory") -> None:
        self.factory = factory
        self.disposed = False
        self.connection: FakeConnection | None = None

    def connect(self) -> FakeConnection:
        if self.factory.connect_error is not None:
            raise self.factory.connect_error
        if self.factory.connect_delay:
            time.sleep(self.factory.connect_delay)
        self.connection = FakeConnection(self, fail_on=self.factory.fail_on)
        with self.factory.lock:
            self.factory.connections.append(self.connection)
        return self.connection

    def dispose(self) -> None:
        self.disposed = True


class RecordingEngineFactory:
    """Stand-in for :func:`sqlalchemy.create_engine` keeping every engine it builds."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, dict[str, Any]]] = []
        self.engines: list[FakeEngine] = []
        self.connections: list[FakeConnection] = []
        self.connect_error: Exception | None = None
        self.fail_on: str | None = None
        self.connect_delay = 0.0
        self.lock = threading.Lock()

    def __call__(self, url: Any, **kwargs: Any) -> FakeEngine:
        engine = FakeEngine(self)
        with self.lock:
            self.calls.append((url, kwargs))
            self.engines.append(engine)
        return engine

    def refuse_connections(self, code: int = 2003, message: str = "Can't connect to MySQL server") -> None:
        self.connect_error = OperationalError("connect", None, Exception(code, message))

    def create_statements(self) -> list[str]:
        return [
            sql
            for connection in self.connections
            for sql, _ in connection.executed
            if sql.startswith("CREATE TABLE")
        ]


@pytest.fixture()
def engine_factory() -> RecordingEngineFactory:
    return RecordingEngineFactory()


@pytest.fixture()
def configured_state() -> ConfigurationState:
    state = ConfigurationState()
    state.configure(host="db1", schema="metrics", user="svc", password="")
    return state


@pytest.fixture()
def provisioner(
    configured_state: ConfigurationState, engine_factory: RecordingEngineFactory
) -> ConnectionProvisioner:
    return ConnectionProvisioner(configured_state, engine_factory=engine_factory)


@pytest.fixture()
def level_generator() -> LevelGenerator:
    return LevelGenerator(seed=1234)
