"""Record-and-fetch access to the database, mapping failures onto StoreError."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from nodeauth.errors import StoreError


def insert_record(db: Session, record):
    """Add and commit a record. Rolls back and raises StoreError on failure."""
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError.from_exception(e) from e
    db.refresh(record)
    return record


def first_or_none(query: Query):
    """Return the first row of a query, or None when nothing matches."""
    try:
        return query.first()
    except SQLAlchemyError as e:
        raise StoreError.from_exception(e) from e


def delete_matching(db: Session, query: Query) -> int:
    try:
        deleted = query.delete()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError.from_exception(e) from e
    return deleted
