# init_db.py: create the tables and import legacy users.json / data.json.
# Usage: DATABASE_URL=sqlite:///./duesbook.db python init_db.py [users.json] [data.json]
import sys

from duesbook.config import get_config
from duesbook.db import SessionLocal, init_db
from duesbook.hashing import get_hasher
from duesbook.logs import configure_logging
from duesbook.migrate import migrate_legacy


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    cfg = get_config()
    configure_logging(cfg.LOG_LEVEL, cfg.LOG_JSON)

    users_path = argv[0] if len(argv) > 0 else cfg.LEGACY_USERS_PATH
    records_path = argv[1] if len(argv) > 1 else cfg.LEGACY_RECORDS_PATH

    init_db()
    db = SessionLocal()
    try:
        users, records = migrate_legacy(db, get_hasher(cfg.PASSWORD_SCHEME), users_path, records_path)
    finally:
        db.close()
    print(f"users: {users}, records: {records}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
