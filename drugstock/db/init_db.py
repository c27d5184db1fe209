# drugstock/db/init_db.py
from __future__ import annotations

import argparse
import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from drugstock.core.config import settings
from drugstock.core.security import hash_password
from drugstock.db.base import Base
from drugstock.db.session import engine

# Import all models so metadata is complete
from drugstock.models import User, Drug, StockTransaction  # noqa: F401

logger = logging.getLogger(__name__)


def seed_admin(
    db: Session,
    *,
    email: str,
    password: str,
    name: str = "Admin",
) -> User:
    """
    Create the admin user if the email is not taken yet; an existing user is
    left untouched. Safe to run multiple times.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user:
        logger.info("Admin user %s already exists", email)
        return user

    user = User(name=name, email=email, password_hash=hash_password(password), is_active=True)
    db.add(user)
    db.flush()
    logger.info("Seeded admin user %s (id=%s)", email, user.id)
    return user


def run(fresh: bool = False) -> None:
    if fresh:
        logger.warning("Dropping ALL tables (dev only) …")
        Base.metadata.drop_all(bind=engine)

    logger.info("Creating all missing tables …")
    Base.metadata.create_all(bind=engine)
    logger.info("Existing tables: %s", inspect(engine).get_table_names())

    try:
        with Session(engine) as db:
            seed_admin(
                db,
                email=settings.ADMIN_EMAIL,
                password=settings.ADMIN_PASSWORD,
                name=settings.ADMIN_NAME,
            )
            db.commit()
    except SQLAlchemyError:
        logger.exception("Seeding failed")
        raise


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(
        description="Initialize DB (create tables, seed admin user).")
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Drop & recreate all tables (DEV ONLY).",
    )
    args = parser.parse_args()
    run(fresh=args.fresh)
