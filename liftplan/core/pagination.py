import base64
import json
from datetime import datetime
from typing import Any

from liftplan.core.exceptions import ValidationError


def encode_cursor(performed_at: datetime, id: int) -> str:
    """Encode a (performed_at, id) keyset position as an opaque cursor."""
    data = json.dumps({"performed_at": performed_at.isoformat(), "id": id})
    return base64.urlsafe_b64encode(data.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, int]:
    """Decode a cursor produced by encode_cursor."""
    try:
        data = base64.urlsafe_b64decode(cursor.encode()).decode()
        decoded: dict[str, Any] = json.loads(data)
        return datetime.fromisoformat(decoded["performed_at"]), int(decoded["id"])
    except (ValueError, KeyError, TypeError):
        raise ValidationError("cursor", "Invalid cursor format")
