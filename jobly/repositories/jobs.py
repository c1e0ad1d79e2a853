"""
Jobs Repository.

Responsibilities:
- CRUD and search for the jobs table.

Invariant:
A job always belongs to an existing company; its id and company never
change after creation.
"""

from typing import Any, Dict, List

from ..errors import BadRequestError, NotFoundError, ValidationError
from ..schema import validate_job_new, validate_job_update
from ..sql import JOB_CRITERIA, parse_integer
from .base import EntityMeta, RecordAccess

JOB_META = EntityMeta(
    table="jobs",
    label="job",
    key_column="id",
    key_field="id",
    columns=(
        ("id", "id"),
        ("title", "title"),
        ("salary", "salary"),
        ("equity", "equity"),
        ("company_handle", "companyHandle"),
    ),
    order_by="id",
    criteria=JOB_CRITERIA,
)


def coerce_job_id(job_id: Any) -> int:
    """Job ids arrive as path strings; only in-range integers are valid."""
    try:
        return parse_integer(job_id)
    except ValueError:
        raise BadRequestError(f"Invalid job id: {job_id}") from None


class JobRepository(RecordAccess):
    """Job postings, searchable by title, minimum salary and equity."""

    meta = JOB_META

    def _validate_update(self, data: Dict[str, Any]) -> List[str]:
        return validate_job_update(data)

    def _coerce_key(self, key: Any) -> int:
        try:
            return coerce_job_id(key)
        except BadRequestError as e:
            self._failed(e)
            raise

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a job posting.

        Args:
            data: {title, salary?, equity?, companyHandle}

        Returns:
            {id, title, salary, equity, companyHandle}

        Raises:
            ValidationError: If data is malformed
            NotFoundError: If the company does not exist
        """
        errors = validate_job_new(data)
        if errors:
            raise self._failed(ValidationError(errors))

        handle = data["companyHandle"]
        if not self._exists("companies", "handle", handle):
            raise self._failed(NotFoundError(f"No company: {handle}"), key=handle)

        return self._insert(data)
