from pydantic import BaseModel
from typing import Optional, List
from app.models.user import StreamingProvider


class StreamingStats(BaseModel):
    provider: StreamingProvider
    available: bool = True
    topArtists: List[str] = []
    topTracks: List[str] = []
    topPlaylists: List[str] = []


class MusicStatsResponse(BaseModel):
    stats: List[StreamingStats] = []
    message: Optional[str] = None
