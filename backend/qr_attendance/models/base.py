"""Base model class with common functionality."""
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List
from qr_attendance import db
from qr_attendance.utils.helpers import isoformat, utcnow

def camel_case(name: str) -> str:
    """``session_date`` -> ``sessionDate``."""
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)

class BaseModel(db.Model):
    """Base model class with common fields and methods."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def save(self) -> 'BaseModel':
        """Save instance to database."""
        db.session.add(self)
        db.session.commit()
        return self

    def to_dict(self, exclude: List[str] = None) -> Dict[str, Any]:
        """Convert instance to a camelCase dictionary."""
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            key = column.name
            if key in exclude:
                continue
            value = getattr(self, key)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (datetime, date, time)):
                value = isoformat(value)
            result[camel_case(key)] = value

        return result

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.id}>'
