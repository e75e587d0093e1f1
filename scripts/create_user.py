import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from registro.config import load_settings
from registro.database import Database, DatabaseError


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a user directly in the database")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Contact email address")
    parser.add_argument("--phone", default=None, help="Optional phone number")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL / DB_* settings or data/registro.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    name = args.name.strip()
    email = args.email.strip()
    if not name or not email:
        print("Error: name and email are required", file=sys.stderr)
        return 1

    database = Database(args.database_url or load_settings().database_url)
    try:
        database.initialize()
        usuario_id = database.create_user(name, email, args.phone or None)
    except DatabaseError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        database.close()

    print(f"Created user #{usuario_id}: {name} <{email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
