import argparse
from pathlib import Path

from . import __version__
from .config import load_settings
from .dao import create_dao
from .database import Employer, Job, init_database
from .errors import ConstraintViolation
from .tables import clear_table

MODELS = {"employers": Employer, "jobs": Job}


def cmd_init(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn
    from .api import create_app

    engine = init_database(Path(args.db))
    uvicorn.run(create_app(engine), host=args.host, port=args.port)


def cmd_list(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return
    engine = init_database(db_path)
    rows = create_dao(engine, MODELS[args.table]).query_for_all()
    if not rows:
        print(f"No rows in {args.table}.")
        return
    print(f"Found {len(rows)} rows in {args.table}:\n")
    for row in rows:
        print(f"ID: {row.id}")
        for key, value in row.business_fields().items():
            print(f"  {key}: {value}")
        print()


def cmd_clear(args: argparse.Namespace) -> None:
    engine = init_database(Path(args.db))
    try:
        removed = clear_table(engine, MODELS[args.table])
    except ConstraintViolation as e:
        raise SystemExit(f"Cannot clear {args.table}: {e}")
    print(f"Removed {removed} rows from {args.table}.")


def main(argv=None):
    settings = load_settings()
    parser = argparse.ArgumentParser(prog="jbapp", description="JBApp job board database and API")
    parser.add_argument("--version", action="store_true", help="Show version")

    db_help = f"Path to SQLite database (default: {settings.db_path})"
    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init", help="Create the employers and jobs tables")
    ini.add_argument("--db", default=str(settings.db_path), help=db_help)
    ini.set_defaults(func=cmd_init)

    srv = subparsers.add_parser("serve", help="Serve the read-only HTTP API")
    srv.add_argument("--db", default=str(settings.db_path), help=db_help)
    srv.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    srv.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    srv.set_defaults(func=cmd_serve)

    lst = subparsers.add_parser("list", help="List all rows of a table")
    lst.add_argument("table", choices=sorted(MODELS), help="Table to list")
    lst.add_argument("--db", default=str(settings.db_path), help=db_help)
    lst.set_defaults(func=cmd_list)

    clr = subparsers.add_parser("clear", help="Delete all rows of a table")
    clr.add_argument("table", choices=sorted(MODELS), help="Table to clear")
    clr.add_argument("--db", default=str(settings.db_path), help=db_help)
    clr.set_defaults(func=cmd_clear)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
