"""
Typed access to the stringified key/value rows of the settings table
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from intranet.models import Setting

logger = logging.getLogger(__name__)

BLOCK_ACCESS_KEY = "mandatory_content_block_access"
MAX_REMINDERS_KEY = "mandatory_content_max_reminders"
MAX_BATCH_KEY = "max_batch_send"


class SettingService:
    """Read and write admin settings; parsing falls back to the caller's default"""

    def get_row(self, db: Session, key: str) -> Optional[Setting]:
        return db.query(Setting).filter(Setting.key == key).first()

    def get(self, db: Session, key: str) -> Optional[str]:
        row = self.get_row(db, key)
        return row.value if row else None

    def get_bool(self, db: Session, key: str, default: bool) -> bool:
        value = self.get(db, key)
        if value is None:
            return default
        return value.strip().lower() == "true"

    def get_int(self, db: Session, key: str, default: int) -> int:
        value = self.get(db, key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Setting {key} is not an integer: {value!r}, using {default}")
            return default

    def list_all(self, db: Session) -> List[Setting]:
        return db.query(Setting).order_by(Setting.key).all()

    def upsert(self, db: Session, key: str, value: str, description: Optional[str] = None) -> Setting:
        """Insert or update one setting row and commit"""
        row = self.get_row(db, key)
        if row is None:
            row = Setting(key=key)
            db.add(row)

        row.value = value
        if description is not None:
            row.description = description

        db.commit()
        db.refresh(row)
        logger.info(f"Setting updated: {key}={value}")
        return row


# Global instance
setting_service = SettingService()
