# scripts/clear_measurements.py
# 全計測レコードを削除する（管理用。API には全件削除ルートはない）
# 使い方: DATABASE_URL=... python scripts/clear_measurements.py --yes
import sys

from geomeasure.db import SessionLocal, init_db
from geomeasure.logs import configure_logging
from geomeasure.store import clear_measurements


def main(argv: list[str]) -> int:
    if "--yes" not in argv:
        print("refusing to clear without --yes")
        return 1
    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        deleted = clear_measurements(db)
    finally:
        db.close()
    print(f"deleted {deleted} measurement(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
