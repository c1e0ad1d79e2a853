"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Dict

from jobly.database import Application, Company, Job, User, get_session, init_database


def fake_hash(password: str) -> str:
    """Stand-in for a real password hasher."""
    return f"hashed:{password}"


@pytest.fixture
def database_url(tmp_path) -> str:
    """Fresh SQLite database with all tables created."""
    url = f"sqlite:///{tmp_path / 'jobly_test.db'}"
    init_database(url)
    return url


@pytest.fixture
def db_session(database_url):
    """Session on the empty test database."""
    session = get_session(database_url)
    yield session
    session.close()


@pytest.fixture
def job_ids(db_session) -> Dict[str, int]:
    """
    Seed the database and return job ids keyed by title.

    Companies c1..c3 have 1..3 employees; jobs j1..j3 (one per company)
    pay 1..3 with equity None, 0 and 0.003. User u1 applied to j1, u2 is
    an admin with no applications.
    """
    for n in (1, 2, 3):
        db_session.add(Company(
            handle=f"c{n}",
            name=f"C{n}",
            num_employees=n,
            description=f"Desc{n}",
            logo_url=f"http://c{n}.img",
        ))
    db_session.commit()

    jobs = [
        Job(title="j1", salary=1, equity=None, company_handle="c1"),
        Job(title="j2", salary=2, equity=0, company_handle="c2"),
        Job(title="j3", salary=3, equity=0.003, company_handle="c3"),
    ]
    db_session.add_all(jobs)
    db_session.add_all([
        User(
            username="u1",
            password=fake_hash("password1"),
            first_name="U1F",
            last_name="U1L",
            email="u1@email.com",
            is_admin=False,
        ),
        User(
            username="u2",
            password=fake_hash("password2"),
            first_name="U2F",
            last_name="U2L",
            email="u2@email.com",
            is_admin=True,
        ),
    ])
    db_session.commit()

    ids = {job.title: job.id for job in jobs}
    db_session.add(Application(username="u1", job_id=ids["j1"], current_state="applied"))
    db_session.commit()
    return ids


@pytest.fixture
def seeded_session(db_session, job_ids):
    """Session on the seeded test database."""
    return db_session


@pytest.fixture
def hash_password():
    return fake_hash
