import argparse
import json
from typing import Any, Dict

from . import __version__
from .config import get_settings, load_env
from .database import get_session, init_database
from .errors import JoblyError
from .logger import get_logger, reset_logger
from .repositories import CompanyRepository, JobRepository, UserRepository


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _criteria(args: argparse.Namespace, names: Dict[str, str]) -> Dict[str, Any]:
    """Map CLI options to criterion names, skipping options not given."""
    criteria = {}
    for attr, name in names.items():
        value = getattr(args, attr)
        if value is not None:
            criteria[name] = value
    return criteria


def cmd_init_db(args: argparse.Namespace) -> None:
    init_database(args.database_url)
    print(f"Database ready: {args.database_url}")


def cmd_companies(args: argparse.Namespace) -> None:
    criteria = _criteria(args, {
        "name": "name",
        "min_employees": "minEmployees",
        "max_employees": "maxEmployees",
    })
    session = get_session(args.database_url)
    try:
        _print_json({"companies": CompanyRepository(session).find_all(criteria)})
    finally:
        session.close()


def cmd_company(args: argparse.Namespace) -> None:
    session = get_session(args.database_url)
    try:
        _print_json({"company": CompanyRepository(session).get(args.handle)})
    finally:
        session.close()


def cmd_jobs(args: argparse.Namespace) -> None:
    criteria = _criteria(args, {
        "title": "title",
        "min_salary": "minSalary",
        "has_equity": "hasEquity",
    })
    session = get_session(args.database_url)
    try:
        _print_json({"jobs": JobRepository(session).find_all(criteria)})
    finally:
        session.close()


def cmd_job(args: argparse.Namespace) -> None:
    session = get_session(args.database_url)
    try:
        _print_json({"job": JobRepository(session).get(args.id)})
    finally:
        session.close()


def cmd_users(args: argparse.Namespace) -> None:
    session = get_session(args.database_url)
    try:
        _print_json({"users": UserRepository(session).find_all()})
    finally:
        session.close()


def cmd_user(args: argparse.Namespace) -> None:
    session = get_session(args.database_url)
    try:
        _print_json({"user": UserRepository(session).get(args.username)})
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="jobly", description="Jobly job board records")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help=f"SQLAlchemy database URL (default: JOBLY_DATABASE_URL or {settings.database_url})",
    )

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init-db", help="Create the database tables")
    ini.set_defaults(func=cmd_init_db)

    cos = subparsers.add_parser("companies", help="List companies, optionally filtered")
    cos.add_argument("--name", help="Case-insensitive substring of the company name")
    cos.add_argument("--min-employees", help="Minimum number of employees")
    cos.add_argument("--max-employees", help="Maximum number of employees")
    cos.set_defaults(func=cmd_companies)

    co = subparsers.add_parser("company", help="Show one company and its jobs")
    co.add_argument("handle", help="Company handle")
    co.set_defaults(func=cmd_company)

    jbs = subparsers.add_parser("jobs", help="List jobs, optionally filtered")
    jbs.add_argument("--title", help="Case-insensitive substring of the job title")
    jbs.add_argument("--min-salary", help="Minimum salary")
    jbs.add_argument("--has-equity", help="'true' to list only jobs offering equity")
    jbs.set_defaults(func=cmd_jobs)

    jb = subparsers.add_parser("job", help="Show one job")
    jb.add_argument("id", help="Job id")
    jb.set_defaults(func=cmd_job)

    usr = subparsers.add_parser("users", help="List users")
    usr.set_defaults(func=cmd_users)

    us = subparsers.add_parser("user", help="Show one user and the jobs they applied to")
    us.add_argument("username", help="Username")
    us.set_defaults(func=cmd_user)

    return parser


def main(argv=None):
    # Load .env if present (JOBLY_DATABASE_URL, JOBLY_LOG_LEVEL, ...)
    load_env()
    # The logger reads JOBLY_LOG_LEVEL and JOBLY_LOG_DIR when first built
    reset_logger()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except JoblyError as e:
            get_logger().error("Command failed", command=args.command, error=str(e))
            raise SystemExit(str(e))
        return

    parser.print_help()


if __name__ == "__main__":
    main()
