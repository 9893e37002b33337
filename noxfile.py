import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run("pytest", "-m", "domain", "tests/bundling/")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_postgres_locks(session: nox.Session) -> None:
    """Run the relational lock store tests with the PostgreSQL driver installed."""
    session.install("-e", ".[test,postgresql]")
    session.run("pytest", "tests/bundling/integration/test_sql_lock_store.py")
