from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.enum import RecommendationType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MediaInfo(CamelModel):
    filename: str = Field(description="Original file name")
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    taken_at: Optional[datetime] = Field(None, description="Capture time, device local")


class AnalyzeMediaRequest(CamelModel):
    media_info_list: List[MediaInfo] = Field(default_factory=list)


class RecommendationItem(CamelModel):
    type: RecommendationType
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    media_count: int
    preview_filenames: List[str] = Field(default_factory=list, max_length=3)
    target_album_id: Optional[int] = None
    target_album_title: Optional[str] = None


class RecommendationResponse(CamelModel):
    recommendations: List[RecommendationItem]
