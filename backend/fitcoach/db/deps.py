"""FastAPI dependency yielding a request-scoped session."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session


def get_db() -> Iterator[Session]:
    from fitcoach.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
