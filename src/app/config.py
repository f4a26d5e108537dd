from dataclasses import dataclass, field

DAY_MS = 24 * 60 * 60 * 1000


@dataclass
class TripDetectionConfig:
    cluster_radius_m: float = 500.0
    home_distance_threshold_m: float = 5000.0
    home_cluster_radius_m: float = 1000.0
    min_media_count: int = 3
    max_scan_count: int = 1000
    scan_days: int = 30
    preview_count: int = 3

    cache_duration_ms: int = DAY_MS
    dismiss_duration_ms: int = 7 * DAY_MS

    unknown_location: str = "unknown location"
    default_trip_title: str = "new trip"
    trip_title_format: str = "{location} trip"


@dataclass
class RecommendationConfig:
    location_radius_km: float = 50.0
    date_gap_days: int = 3
    preview_count: int = 3


@dataclass
class EngineConfig:
    detection: TripDetectionConfig = field(default_factory=TripDetectionConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)


engine_config = EngineConfig()
