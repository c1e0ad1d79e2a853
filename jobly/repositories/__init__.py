from .base import EntityMeta, RecordAccess
from .companies import CompanyRepository
from .jobs import JobRepository
from .users import UserRepository

__all__ = [
    "EntityMeta",
    "RecordAccess",
    "CompanyRepository",
    "JobRepository",
    "UserRepository",
]
