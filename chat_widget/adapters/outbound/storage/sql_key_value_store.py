"""SQL-backed key-value store adapter."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chat_widget.application.errors import StorageUnavailable
from chat_widget.application.ports.key_value_store import KeyValueStore
from chat_widget.infrastructure.db import get_db_session
from chat_widget.infrastructure.logging.logger import logger

from .models import StorageEntryModel


class SqlKeyValueStore(KeyValueStore):
    """SQL implementation of the key-value store (one row per key)."""

    async def get(self, key: str) -> Optional[str]:
        """
        Get a value.

        Args:
            key: Storage key

        Returns:
            Stored value, or None if not found
        """
        db: Session = get_db_session()
        try:
            model = db.query(StorageEntryModel).filter(StorageEntryModel.key == key).first()
            return None if model is None else model.value
        except SQLAlchemyError as e:
            logger.error(f"Database error while reading key {key}: {str(e)}")
            raise StorageUnavailable(f"Database read failed for {key!r}") from e
        finally:
            db.close()

    async def set_many(self, items: dict[str, str]) -> None:
        """
        Upsert several keys in one transaction.

        Args:
            items: Mapping of key to value
        """
        db: Session = get_db_session()
        try:
            for key, value in items.items():
                model = db.query(StorageEntryModel).filter(StorageEntryModel.key == key).first()
                if model:
                    model.value = value
                else:
                    db.add(StorageEntryModel(key=key, value=value))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while writing keys {sorted(items)}: {str(e)}")
            raise StorageUnavailable("Database write failed") from e
        finally:
            db.close()
