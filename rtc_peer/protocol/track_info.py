"""
Metadados de tracks anunciados pelo lado remoto (MediaMap)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger("rtc-peer.protocol")


@dataclass
class TrackInfo:
    """Informação de uma track remota (chave no MediaMap = mid do transceiver)"""
    type: str
    sender_id: str
    mime_type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackInfo":
        return cls(
            type=data.get("type", ""),
            sender_id=data.get("sender_id", data.get("senderId", "")),
            mime_type=data.get("mime_type", data.get("mimeType", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "sender_id": self.sender_id, "mime_type": self.mime_type}


def parse_media_map(payload: Optional[Dict[str, Any]]) -> Dict[str, TrackInfo]:
    """Converte o payload de MediaMap, ignorando entradas inválidas"""
    result: Dict[str, TrackInfo] = {}
    if not isinstance(payload, dict):
        return result
    for key, value in payload.items():
        if not isinstance(value, dict):
            logger.warning(f"Entrada inválida no media map: {key}")
            continue
        result[str(key)] = TrackInfo.from_dict(value)
    return result
