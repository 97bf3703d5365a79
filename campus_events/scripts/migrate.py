from __future__ import annotations

import logging
import os
import time
import subprocess
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from campus_events.core.config import settings

logger = logging.getLogger("campus_events.migrate")


def wait_for_db(engine, timeout_s: int = 60) -> None:
    """Wait until the database is accepting connections."""
    start = time.time()
    delay = 1.0

    while True:
        try:
            with engine.begin() as conn:
                conn.execute(text("SELECT 1"))
            return
        except OperationalError as e:
            if time.time() - start > timeout_s:
                raise
            logger.info("Database not ready yet (%s), retrying in %.1fs", e.__class__.__name__, delay)
            time.sleep(delay)
            delay = min(delay * 1.5, 5.0)


def run(cmd: list[str]) -> int:
    p = subprocess.run(cmd, check=False)
    return p.returncode


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    dsn = os.getenv("DATABASE_URL") or settings.DATABASE_URL
    engine = create_engine(dsn, future=True, pool_pre_ping=True)

    # Wait for DB readiness (important in docker-compose)
    wait_for_db(engine, timeout_s=int(os.getenv("DB_WAIT_TIMEOUT", "90")))

    tables = set(inspect(engine).get_table_names())

    if "alembic_version" not in tables and "events" in tables:
        # Existing schema without alembic tracking: stamp head
        rc = run(["alembic", "stamp", "head"])
    else:
        rc = run(["alembic", "upgrade", "head"])
    if rc != 0:
        # Don't stamp on failure; fail fast so schema doesn't drift from alembic_version.
        return rc

    # Seed default admin once (idempotent)
    from campus_events.db.session import session_scope
    from campus_events.db.models.user import User, Role
    from campus_events.core.security import hash_password

    if settings.AUTO_CREATE_ADMIN:
        with session_scope() as db:
            exists = db.query(User).filter(User.email == settings.DEFAULT_ADMIN_EMAIL).first()
            if not exists:
                db.add(
                    User(
                        name=settings.DEFAULT_ADMIN_NAME,
                        email=settings.DEFAULT_ADMIN_EMAIL,
                        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
                        role=Role.ADMIN,
                    )
                )
                logger.info("Default admin %s created", settings.DEFAULT_ADMIN_EMAIL)

    # Seed sample dataset (idempotent)
    if settings.AUTO_SEED_SAMPLE:
        from campus_events.scripts.seed_sample import seed_sample

        with session_scope() as db:
            seed_sample(db)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
