import pytest
import os
from datetime import date
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from levelup.database import Base, get_db, get_session_factory
from levelup.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite emits its own BEGIN lazily, which breaks SAVEPOINT; hand it to SQLAlchemy.
@event.listens_for(engine, "connect")
def _do_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _do_begin(conn):
    conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    import levelup.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def connection():
    """One outer transaction per test; everything is rolled back afterwards."""
    connection = engine.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def session_factory(connection):
    # Services commit and roll back freely; each of those only touches a savepoint.
    return sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session, session_factory):
    """TestClient wired to the test transaction, background jobs included."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def headers():
    """Builds the identity headers the gateway would forward."""
    def _headers(user_id, role, department=""):
        return {
            "X-User-Id": str(user_id),
            "X-User-Role": role,
            "X-User-Department": department,
        }
    return _headers


@pytest.fixture(scope="function")
def make_employee(db_session):
    from levelup.core.permissions import Role
    from levelup.models.employee import Employee

    def _make(name, department="Engineering", team="Platform", level="L2", years_of_service=3,
              hire_date=date(2020, 3, 1), role=Role.TEAM_MEMBER, is_active=True):
        employee = Employee(
            name=name,
            department=department,
            team=team,
            level=level,
            years_of_service=years_of_service,
            hire_date=hire_date,
            role=role,
            is_active=is_active,
        )
        db_session.add(employee)
        db_session.commit()
        return employee
    return _make


@pytest.fixture(scope="function")
def grade_rules(db_session):
    from levelup.models.grade_rule import GradeRule

    rules = [
        GradeRule(grade="S", year_range="2021-2024", points=5),
        GradeRule(grade="A", year_range="2021-2024", points=4),
        GradeRule(grade="B", year_range="2021-2024", points=3),
        GradeRule(grade="C", year_range="2021-2024", points=1),
        GradeRule(grade="S", year_range="2025", points=6),
        GradeRule(grade="A", year_range="2025", points=4.5),
        GradeRule(grade="B", year_range="2025", points=3),
    ]
    db_session.add_all(rules)
    db_session.commit()
    return rules


@pytest.fixture(scope="function")
def thresholds(db_session):
    from levelup.models.level_threshold import LevelThreshold

    rows = [
        LevelThreshold(level="L2", year=2025, required_points=12, required_credits=10, min_tenure_years=4),
        LevelThreshold(level="L3", year=2025, required_points=16, required_credits=15, min_tenure_years=4),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {row.level: row for row in rows}
