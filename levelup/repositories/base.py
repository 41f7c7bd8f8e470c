"""
Dialect-aware INSERT helpers.

Upserts are keyed on the tables' unique constraints so concurrent writers on
the same key never race a read-then-insert.
"""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(db: Session, model):
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def insert_if_absent(self, model, index_elements, values) -> int:
        """Returns the number of rows actually inserted."""
        if not values:
            return 0
        stmt = dialect_insert(self.db, model).values(values)
        stmt = stmt.on_conflict_do_nothing(index_elements=index_elements)
        result = self.db.execute(stmt)
        return result.rowcount or 0

    def upsert(self, model, index_elements, values, update_columns):
        stmt = dialect_insert(self.db, model).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=index_elements,
            set_={col: stmt.excluded[col] for col in update_columns},
        )
        return self.db.execute(stmt)
