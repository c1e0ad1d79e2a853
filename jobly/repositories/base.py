"""
Generic record access.

Responsibilities:
- Fixed-shape CRUD statements for one table, described by EntityMeta.
- Partial updates and filtered searches built by jobly.sql.
- Translating zero-row results into NotFoundError.

Non-Responsibilities:
- No HTTP routing, no authentication, no password hashing policy.

Invariant:
Values always travel as bind parameters; only EntityMeta constants are
interpolated into statement text.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import like_operator_for
from ..errors import (
    BadRequestError,
    InvalidCriteriaError,
    JoblyError,
    NotFoundError,
    ValidationError,
)
from ..logger import get_logger
from ..sql import CriterionSpec, build_filter, sql_for_partial_update, to_statement



@dataclass(frozen=True)
class EntityMeta:
    """Table layout of one entity, as seen by RecordAccess."""

    table: str
    label: str
    key_column: str
    key_field: str
    # (column, field) pairs in select order
    columns: Tuple[Tuple[str, str], ...]
    order_by: str
    criteria: Optional[CriterionSpec] = None

    @property
    def field_map(self) -> Dict[str, str]:
        return {field: column for column, field in self.columns if field != column}

    def column_for(self, field: str) -> str:
        return self.field_map.get(field, field)

    @property
    def select_list(self) -> str:
        return ", ".join(
            column if column == field else f'{column} AS "{field}"'
            for column, field in self.columns
        )


class RecordAccess:
    """
    CRUD over a single table.

    Subclasses set `meta` and may override `_validate_update`, `_coerce_key`
    and `_shape` for entity specifics.
    """

    meta: EntityMeta

    def __init__(self, session: Session):
        self.session = session

    # Hooks

    def _validate_update(self, data: Dict[str, Any]) -> List[str]:
        return []

    def _coerce_key(self, key: Any) -> Any:
        return key

    def _shape(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return record

    # Execution helpers

    def _execute(self, sql: str, values: Sequence[Any] = (), table: Optional[str] = None):
        statement, params = to_statement(sql, values)
        table = table or self.meta.table
        logger = get_logger()
        logger.record_query(table)
        logger.debug("Executing statement", table=table, params=len(params))
        return self.session.execute(statement, params)

    def _rows(self, sql: str, values: Sequence[Any] = (), table: Optional[str] = None) -> List[Dict[str, Any]]:
        result = self._execute(sql, values, table)
        return [dict(row) for row in result.mappings().all()]

    def _first(self, sql: str, values: Sequence[Any] = (), table: Optional[str] = None) -> Optional[Dict[str, Any]]:
        row = self._execute(sql, values, table).mappings().first()
        return dict(row) if row is not None else None

    def _failed(self, error: JoblyError, /, **context) -> JoblyError:
        logger = get_logger()
        logger.record_error(type(error).__name__)
        logger.warning(str(error), table=self.meta.table, **context)
        return error

    def _not_found(self, key: Any) -> NotFoundError:
        return self._failed(NotFoundError(f"No {self.meta.label}: {key}"), key=key)

    def _exists(self, table: str, column: str, value: Any) -> bool:
        row = self._first(f"SELECT {column} FROM {table} WHERE {column} = $1", (value,), table)
        return row is not None

    # Operations

    def find_all(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        List all records, optionally narrowed by search criteria.

        Raises:
            InvalidCriteriaError: If the criteria are not valid for this entity
        """
        where = ""
        values: Tuple[Any, ...] = ()
        if criteria:
            if self.meta.criteria is None:
                raise self._failed(
                    InvalidCriteriaError(f"{self.meta.label} records cannot be searched")
                )
            try:
                clause = build_filter(
                    criteria,
                    self.meta.criteria,
                    like_operator=like_operator_for(self.session),
                )
            except InvalidCriteriaError as e:
                self._failed(e, criteria=dict(criteria))
                raise
            if not clause.is_empty:
                where = f"WHERE {clause.sql}"
                values = clause.values

        sql = (
            f"SELECT {self.meta.select_list} FROM {self.meta.table} "
            f"{where} ORDER BY {self.meta.order_by}"
        )
        return [self._shape(r) for r in self._rows(sql, values)]

    def get(self, key: Any) -> Dict[str, Any]:
        """
        Fetch one record by key.

        Raises:
            NotFoundError: If no record has this key
        """
        key = self._coerce_key(key)
        record = self._first(
            f"SELECT {self.meta.select_list} FROM {self.meta.table} "
            f"WHERE {self.meta.key_column} = $1",
            (key,),
        )
        if record is None:
            raise self._not_found(key)
        return self._shape(record)

    def update(self, key: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update: only the fields present in data change.

        Raises:
            ValidationError: If data holds unknown or malformed fields
            InvalidArgumentError: If data is empty
            NotFoundError: If no record has this key
        """
        errors = self._validate_update(data)
        if errors:
            raise self._failed(ValidationError(errors))
        return self._apply_update(key, data)

    def _apply_update(self, key: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        key = self._coerce_key(key)
        try:
            clause = sql_for_partial_update(data, self.meta.field_map)
        except BadRequestError as e:
            self._failed(e, key=key)
            raise

        key_idx = len(clause.values) + 1
        sql = (
            f"UPDATE {self.meta.table} SET {clause.sql} "
            f"WHERE {self.meta.key_column} = ${key_idx} "
            f"RETURNING {self.meta.select_list}"
        )
        record = self._write(sql, clause.values + (key,))
        if record is None:
            raise self._not_found(key)

        get_logger().info(f"Updated {self.meta.label}", key=key, fields=list(data))
        return self._shape(record)

    def remove(self, key: Any) -> None:
        """
        Delete one record by key.

        Raises:
            NotFoundError: If no record has this key
        """
        key = self._coerce_key(key)
        record = self._write(
            f"DELETE FROM {self.meta.table} WHERE {self.meta.key_column} = $1 "
            f"RETURNING {self.meta.key_column}",
            (key,),
        )
        if record is None:
            raise self._not_found(key)
        get_logger().info(f"Removed {self.meta.label}", key=key)

    def _insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        fields = list(data)
        columns = ", ".join(self.meta.column_for(f) for f in fields)
        placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))
        sql = (
            f"INSERT INTO {self.meta.table} ({columns}) VALUES ({placeholders}) "
            f"RETURNING {self.meta.select_list}"
        )
        record = self._write(sql, tuple(data[f] for f in fields))
        get_logger().info(f"Created {self.meta.label}", key=record[self.meta.key_field])
        return self._shape(record)

    def _write(self, sql: str, values: Sequence[Any], table: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Run a mutating statement, commit, and return its first RETURNING row."""
        try:
            record = self._first(sql, values, table)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise self._failed(
                BadRequestError(f"Cannot save {self.meta.label}: constraint violated"),
                error=str(e.orig),
            ) from e
        return record
