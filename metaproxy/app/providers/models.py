"""Response envelopes shared by all catalog providers."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class MetadataResult(BaseModel):
    """Normalized lookup result.

    ``found=False`` results serialize to ``{"found": false}`` only.
    """
    found: bool
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def not_found(cls) -> "MetadataResult":
        return cls(found=False)

    def to_response(self) -> Dict[str, Any]:
        if not self.found:
            return {"found": False}
        return self.model_dump(exclude_none=True)


class ClientConfig(BaseModel):
    """Body of the config route."""
    client_id: str
    latest_version: str
