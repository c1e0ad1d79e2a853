"""
Companies Repository.

Responsibilities:
- CRUD and search for the companies table.
- Attaching a company's jobs on lookup.
"""

from typing import Any, Dict, List

from ..errors import DuplicateError, ValidationError
from ..schema import validate_company_new, validate_company_update
from ..sql import COMPANY_CRITERIA
from .base import EntityMeta, RecordAccess

COMPANY_META = EntityMeta(
    table="companies",
    label="company",
    key_column="handle",
    key_field="handle",
    columns=(
        ("handle", "handle"),
        ("name", "name"),
        ("description", "description"),
        ("num_employees", "numEmployees"),
        ("logo_url", "logoUrl"),
    ),
    order_by="name",
    criteria=COMPANY_CRITERIA,
)


class CompanyRepository(RecordAccess):
    """Companies, searchable by name and employee count."""

    meta = COMPANY_META

    def _validate_update(self, data: Dict[str, Any]) -> List[str]:
        return validate_company_update(data)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a company.

        Args:
            data: {handle, name, description, numEmployees?, logoUrl?}

        Returns:
            {handle, name, description, numEmployees, logoUrl}

        Raises:
            ValidationError: If data is malformed
            DuplicateError: If the handle is taken
        """
        errors = validate_company_new(data)
        if errors:
            raise self._failed(ValidationError(errors))

        handle = data["handle"]
        if self._exists("companies", "handle", handle):
            raise self._failed(DuplicateError(f"Duplicate company: {handle}"), key=handle)

        return self._insert(data)

    def get(self, handle: str) -> Dict[str, Any]:
        """
        Returns {handle, name, description, numEmployees, logoUrl, jobs}
        where jobs is [{id, title, salary, equity}, ...] and is left out
        when the company has none.
        """
        company = super().get(handle)
        jobs = self._rows(
            "SELECT id, title, salary, equity FROM jobs "
            "WHERE company_handle = $1 ORDER BY id",
            (handle,),
            table="jobs",
        )
        if jobs:
            company["jobs"] = jobs
        return company
