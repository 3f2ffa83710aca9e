# docvault/documents/models.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from typing import Any, Dict, Optional

DEFAULT_STATUS = "uploaded"


@dataclass
class DocumentRecord:
    owner_id: str
    owner_email: Optional[str]
    stored_name: str
    original_name: str
    content_type: str
    size_bytes: int
    storage_path: str
    status: str = DEFAULT_STATUS
    created_at: Optional[datetime] = None
    id: Optional[str] = field(default=None)

    def with_identity(self, doc_id: str, created_at: Optional[datetime]) -> "DocumentRecord":
        return replace(self, id=doc_id, created_at=created_at)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view (created_at as ISO-8601)."""
        data = asdict(self)
        if isinstance(self.created_at, datetime):
            data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "DocumentRecord":
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=doc_id if doc_id is not None else data.get("id"),
            owner_id=str(data.get("owner_id") or ""),
            owner_email=data.get("owner_email"),
            stored_name=str(data.get("stored_name") or ""),
            original_name=str(data.get("original_name") or ""),
            content_type=str(data.get("content_type") or ""),
            size_bytes=int(data.get("size_bytes") or 0),
            storage_path=str(data.get("storage_path") or ""),
            status=str(data.get("status") or DEFAULT_STATUS),
            created_at=created_at if isinstance(created_at, datetime) else None,
        )
