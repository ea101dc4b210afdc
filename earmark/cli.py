"""
Administrative command line for Earmark.

Usage:
    earmark serve [--host HOST] [--port PORT] [--reload]
    earmark scan
    earmark unlock
    earmark attempts [--limit N]
    earmark hash-password [--password P]
    earmark verify-password [--password P] [--hash H]

Commands that touch the database use DB_PATH (and AUDIO_PATH for scans) from
the environment, exactly as the server does.
"""

import argparse
import asyncio
import getpass
import sys

from earmark.core.security import BCRYPT_ROUNDS, get_password_hash, validate_password


def _read_password(password: str | None, confirm: bool = False) -> str:
    if password is not None:
        return password

    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise SystemExit("Passwords do not match")
    return password


async def _open_database():
    from earmark.core.config import settings
    from earmark.db.session import Database

    database = Database.for_path(settings.DB_PATH)
    await database.create_all()
    return database


async def _scan() -> int:
    from earmark.core.config import settings
    from earmark.services.library import AudioLibrary

    database = await _open_database()
    try:
        library = AudioLibrary(settings.AUDIO_PATH)
        async with database.session_maker() as session:
            result = await library.sync(session)
    finally:
        await database.dispose()

    print(f"New files:      {result.new_files}")
    print(f"Restored files: {result.restored_files}")
    print(f"Deleted files:  {result.deleted_files}")
    print(f"Total files:    {result.total_files}")
    return 0


async def _unlock() -> int:
    from earmark.services.lockout import clear_attempts

    database = await _open_database()
    try:
        async with database.session_maker() as session:
            removed = await clear_attempts(session)
    finally:
        await database.dispose()

    print(f"Cleared {removed} auth attempt(s); the system is unlocked")
    return 0


async def _attempts(limit: int) -> int:
    from earmark.services.lockout import (
        MAX_FAILED_ATTEMPTS,
        get_failed_attempt_count,
        get_recent_attempts,
    )

    database = await _open_database()
    try:
        async with database.session_maker() as session:
            failed = await get_failed_attempt_count(session)
            attempts = await get_recent_attempts(session, limit=limit)
    finally:
        await database.dispose()

    state = "LOCKED" if failed >= MAX_FAILED_ATTEMPTS else "unlocked"
    print(f"Failed attempts: {failed}/{MAX_FAILED_ATTEMPTS} ({state})")
    if not attempts:
        print("No auth attempts recorded")
    for attempt in attempts:
        outcome = "SUCCESS" if attempt.success else "FAILED"
        print(f"{attempt.attempt_time.isoformat()}  {attempt.ip_address:<45}  {outcome}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from earmark.core.config import settings

    uvicorn.run(
        "earmark.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        # Logging is configured by the app itself
        log_config=None,
    )
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    from earmark.core.logging import setup_logging

    setup_logging()
    return asyncio.run(_scan())


def cmd_unlock(args: argparse.Namespace) -> int:
    return asyncio.run(_unlock())


def cmd_attempts(args: argparse.Namespace) -> int:
    return asyncio.run(_attempts(args.limit))


def cmd_hash_password(args: argparse.Namespace) -> int:
    password = _read_password(args.password, confirm=True)
    if not password:
        print("Password must not be empty", file=sys.stderr)
        return 1

    print(get_password_hash(password, rounds=args.rounds))
    return 0


def cmd_verify_password(args: argparse.Namespace) -> int:
    password_hash = args.hash
    if password_hash is None:
        from earmark.core.config import settings

        password_hash = settings.PASSWORD_HASH

    if not password_hash:
        print("No password hash given and PASSWORD_HASH is not set", file=sys.stderr)
        return 1

    if validate_password(_read_password(args.password), password_hash):
        print("Password matches")
        return 0

    print("Password does NOT match", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="earmark",
        description="Earmark audio library administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    scan = subparsers.add_parser("scan", help="Synchronize the library with AUDIO_PATH")
    scan.set_defaults(func=cmd_scan)

    unlock = subparsers.add_parser("unlock", help="Clear the auth attempt log")
    unlock.set_defaults(func=cmd_unlock)

    attempts = subparsers.add_parser("attempts", help="Show recent auth attempts")
    attempts.add_argument("--limit", type=int, default=10, help="Attempts to show (default: 10)")
    attempts.set_defaults(func=cmd_attempts)

    hash_password = subparsers.add_parser(
        "hash-password", help="Print a bcrypt hash for PASSWORD_HASH"
    )
    hash_password.add_argument("--password", default=None, help="Password (prompted if omitted)")
    hash_password.add_argument(
        "--rounds", type=int, default=BCRYPT_ROUNDS, help=f"bcrypt cost (default: {BCRYPT_ROUNDS})"
    )
    hash_password.set_defaults(func=cmd_hash_password)

    verify_password = subparsers.add_parser(
        "verify-password", help="Check a password against PASSWORD_HASH"
    )
    verify_password.add_argument("--password", default=None, help="Password (prompted if omitted)")
    verify_password.add_argument("--hash", default=None, help="Hash to check (default: PASSWORD_HASH)")
    verify_password.set_defaults(func=cmd_verify_password)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
