"""
Users Repository.

Responsibilities:
- CRUD for the users table.
- Job applications (the users <-> jobs relation).

Non-Responsibilities:
- No password hashing policy; the caller supplies hash_password.
- No authentication.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..database import APPLICATION_STATES
from ..errors import BadRequestError, DuplicateError, JoblyError, NotFoundError, ValidationError
from ..schema import validate_user_new, validate_user_update
from ..sql import sql_for_partial_update
from .base import EntityMeta, RecordAccess
from .jobs import coerce_job_id

USER_META = EntityMeta(
    table="users",
    label="user",
    key_column="username",
    key_field="username",
    columns=(
        ("username", "username"),
        ("first_name", "firstName"),
        ("last_name", "lastName"),
        ("email", "email"),
        ("is_admin", "isAdmin"),
    ),
    order_by="username",
)

APPLICATION_FIELDS = {"currentState": "current_state"}
APPLICATION_RETURNING = 'username, job_id AS "jobId", current_state AS "currentState"'


class UserRepository(RecordAccess):
    """Users and their job applications."""

    meta = USER_META

    def __init__(self, session: Session, hash_password: Optional[Callable[[str], str]] = None):
        super().__init__(session)
        self._hash_password = hash_password

    def hash_password(self, password: str) -> str:
        if self._hash_password is None:
            raise JoblyError("No password hasher configured")
        return self._hash_password(password)

    def _shape(self, record: Dict[str, Any]) -> Dict[str, Any]:
        # SQLite hands booleans back as 0/1
        if "isAdmin" in record and record["isAdmin"] is not None:
            record["isAdmin"] = bool(record["isAdmin"])
        return record

    def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a user.

        Returns {username, firstName, lastName, email, isAdmin}

        Raises:
            ValidationError: If data is malformed
            DuplicateError: If the username is taken
        """
        errors = validate_user_new(data)
        if errors:
            raise self._failed(ValidationError(errors))

        username = data["username"]
        if self._exists("users", "username", username):
            raise self._failed(DuplicateError(f"Duplicate username: {username}"), key=username)

        data = dict(data)
        data["password"] = self.hash_password(data["password"])
        return self._insert(data)

    def get(self, username: str) -> Dict[str, Any]:
        """
        Returns {username, firstName, lastName, email, isAdmin, jobs}
        where jobs lists the ids of applied-to jobs and is left out when
        there are none.
        """
        user = super().get(username)
        rows = self._rows(
            'SELECT job_id AS "jobId" FROM applications '
            "WHERE username = $1 ORDER BY job_id",
            (username,),
            table="applications",
        )
        if rows:
            user["jobs"] = [r["jobId"] for r in rows]
        return user

    def update(self, username: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update. A new password is hashed before it is stored.

        Callers must make sure the requester may change the password or
        admin flag; nothing here checks permissions.
        """
        errors = validate_user_update(data)
        if errors:
            raise self._failed(ValidationError(errors))

        if "password" in data:
            data = dict(data)
            data["password"] = self.hash_password(data["password"])
        return self._apply_update(username, data)

    def apply_for_job(self, username: str, job_id: Any) -> Dict[str, Any]:
        """
        Record that a user applied to a job.

        Returns {username, jobId, currentState: "applied"}

        Raises:
            NotFoundError: If the user or job does not exist
            DuplicateError: If the user already applied
        """
        job_id = coerce_job_id(job_id)
        if not self._exists("users", "username", username):
            raise self._not_found(username)
        if not self._exists("jobs", "id", job_id):
            raise self._failed(NotFoundError(f"No job: {job_id}"), key=job_id)

        if self._has_applied(username, job_id):
            raise self._duplicate_application(username, job_id)

        try:
            return self._write(
                "INSERT INTO applications (username, job_id, current_state) "
                f"VALUES ($1, $2, $3) RETURNING {APPLICATION_RETURNING}",
                (username, job_id, "applied"),
                table="applications",
            )
        except BadRequestError:
            # Another session inserted the same application after our check
            if self._has_applied(username, job_id):
                raise self._duplicate_application(username, job_id)
            raise

    def _has_applied(self, username: str, job_id: int) -> bool:
        existing = self._first(
            "SELECT username FROM applications WHERE username = $1 AND job_id = $2",
            (username, job_id),
            table="applications",
        )
        return existing is not None

    def _duplicate_application(self, username: str, job_id: int) -> DuplicateError:
        return self._failed(
            DuplicateError(f"Duplicate application: {username} for job id {job_id}"),
            key=username,
        )

    def update_application(self, username: str, job_id: Any, new_state: str) -> Dict[str, Any]:
        """
        Move an application to a new state.

        Returns {username, jobId, currentState}

        Raises:
            ValidationError: If new_state is not a known state
            NotFoundError: If the user has not applied to the job
        """
        job_id = coerce_job_id(job_id)
        if new_state not in APPLICATION_STATES:
            raise self._failed(ValidationError(
                [f"Field 'newState' must be one of: {', '.join(APPLICATION_STATES)}"]
            ))

        clause = sql_for_partial_update({"currentState": new_state}, APPLICATION_FIELDS)
        user_idx = len(clause.values) + 1
        application = self._write(
            f"UPDATE applications SET {clause.sql} "
            f"WHERE username = ${user_idx} AND job_id = ${user_idx + 1} "
            f"RETURNING {APPLICATION_RETURNING}",
            clause.values + (username, job_id),
            table="applications",
        )
        if application is None:
            raise self._failed(
                NotFoundError(f"No application: {username} for job id {job_id}"),
                key=username,
            )
        return application

    def find_applications(self, username: str) -> List[Dict[str, Any]]:
        """All applications of one user, with their states."""
        self.get(username)
        return self._rows(
            f"SELECT {APPLICATION_RETURNING} FROM applications "
            "WHERE username = $1 ORDER BY job_id",
            (username,),
            table="applications",
        )
