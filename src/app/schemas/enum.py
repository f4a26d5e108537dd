from enum import Enum


class AlbumVisibility(str, Enum):
    PRIVATE = "PRIVATE"
    FRIENDS_ONLY = "FRIENDS_ONLY"
    PUBLIC = "PUBLIC"


class RecommendationType(str, Enum):
    NEW_TRIP = "NEW_TRIP"
    ADD_TO_EXISTING = "ADD_TO_EXISTING"


class MediaKind(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
