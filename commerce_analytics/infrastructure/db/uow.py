from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session


class SqlAlchemyUnitOfWork:
    """One session per graph call or settings write. Read-only units never commit."""

    def __init__(self, engine: Engine, *, read_only: bool = False):
        self.engine = engine
        self.read_only = read_only
        self.session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = Session(self.engine, expire_on_commit=False)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        session, self.session = self.session, None
        try:
            if exc_type is None and not self.read_only:
                session.commit()
            else:
                session.rollback()
        finally:
            session.close()
