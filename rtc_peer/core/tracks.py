"""
Contexto das tracks locais e presets de encoding de vídeo
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..ports.media_engine import (
    CodecCapability,
    EncodingParameters,
    MediaStream,
    MediaTrack,
    RtpSender,
)


# Presets simulcast: camada baixa (l) e alta (h)
SIMULCAST_ENCODINGS = (
    EncodingParameters(rid="l", max_bitrate=500_000, max_framerate=5.0, scale_resolution_down_by=1.0),
    EncodingParameters(rid="h", max_bitrate=2_500_000, max_framerate=20.0, scale_resolution_down_by=1.0),
)

# Encoding único quando simulcast está desabilitado
FALLBACK_ENCODINGS = (
    EncodingParameters(max_bitrate=1_000_000, max_framerate=10.0, scale_resolution_down_by=1.0),
)


@dataclass
class TrackOptions:
    """Opções de envio de uma track"""
    encodings: Optional[List[EncodingParameters]] = None
    # Se definido, força a lista de codecs (usado na troca de codec)
    codecs: Optional[List[CodecCapability]] = None


@dataclass
class TrackContext:
    """Estado de uma track local adicionada à conexão"""
    track: MediaTrack
    sender: RtpSender
    stream: Optional[MediaStream] = None
    opts: TrackOptions = field(default_factory=TrackOptions)

    @property
    def is_video(self) -> bool:
        return self.track.kind == "video"


def default_encodings(simulcast: bool) -> List[EncodingParameters]:
    """Retorna cópias dos presets para não compartilhar instâncias entre senders"""
    presets = SIMULCAST_ENCODINGS if simulcast else FALLBACK_ENCODINGS
    return [
        EncodingParameters(
            rid=e.rid,
            max_bitrate=e.max_bitrate,
            max_framerate=e.max_framerate,
            scale_resolution_down_by=e.scale_resolution_down_by,
            active=e.active,
        )
        for e in presets
    ]
