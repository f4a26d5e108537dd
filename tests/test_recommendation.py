import os
import sys
from datetime import date, datetime

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from api.endpoints.recommendation import get_recommendation_service
from app.common.models import AlbumSummary
from app.db.database import init_models, make_session_factory
from app.models.album import Album
from app.recommendation.repository import AlbumRepository
from app.recommendation.schema import AnalyzeMediaRequest, MediaInfo
from app.recommendation.services.clustering import RecommendationClusterer
from app.recommendation.services.recommendation import RecommendationService
from app.schemas.enum import RecommendationType
from main import app


def info(name, lat=None, lng=None, taken_at=None):
    return MediaInfo(filename=name, latitude=lat, longitude=lng, taken_at=taken_at)


class FakeAlbumRepository:
    def __init__(self, albums=()):
        self.albums = list(albums)
        self.calls = []

    async def find_by_user_id_order_by_created_at_desc(self, user_id):
        self.calls.append(user_id)
        return self.albums


# --- clustering ---------------------------------------------------------------


def test_nearby_media_weeks_apart_form_one_new_trip():
    items = [
        info("a.jpg", 37.500, 127.000, datetime(2026, 1, 1, 10)),
        info("b.jpg", 37.510, 127.010, datetime(2026, 1, 1, 15)),
        info("c.jpg", 37.505, 127.005, datetime(2026, 2, 9, 9)),
        info("d.jpg", 37.495, 126.995, datetime(2026, 2, 9, 18)),
    ]

    [rec] = RecommendationClusterer().analyze(items, albums=[])

    assert rec.type == RecommendationType.NEW_TRIP
    assert rec.media_count == 4
    assert rec.start_date == date(2026, 1, 1)
    assert rec.end_date == date(2026, 2, 9)
    assert rec.latitude == pytest.approx(37.5025)
    assert rec.longitude == pytest.approx(127.0025)
    assert rec.preview_filenames == ["a.jpg", "b.jpg", "c.jpg"]
    assert rec.target_album_id is None
    assert rec.target_album_title is None


def test_far_apart_media_close_in_time_are_grouped():
    seoul = info("seoul.jpg", 37.5665, 126.9780, datetime(2026, 3, 1, 23, 50))
    jeju = info("jeju.jpg", 33.4996, 126.5312, datetime(2026, 3, 4, 0, 10))

    [cluster] = RecommendationClusterer().cluster([seoul, jeju])

    assert cluster.media_count == 2


def test_day_gap_counts_calendar_days():
    clusterer = RecommendationClusterer()
    a = info("a.jpg", 37.5665, 126.9780, datetime(2026, 3, 1, 23, 59))
    b = info("b.jpg", 33.4996, 126.5312, datetime(2026, 3, 5, 0, 1))
    assert clusterer.should_cluster_together(a, b) is False


def test_far_and_distant_in_time_stay_apart():
    items = [
        info("seoul.jpg", 37.5665, 126.9780, datetime(2026, 3, 1)),
        info("jeju.jpg", 33.4996, 126.5312, datetime(2026, 5, 1)),
    ]
    assert len(RecommendationClusterer().cluster(items)) == 2


def test_media_without_coordinates_gives_null_center():
    items = [
        info("a.jpg", taken_at=datetime(2026, 4, 1)),
        info("b.jpg", taken_at=datetime(2026, 4, 2)),
    ]

    [rec] = RecommendationClusterer().analyze(items, albums=[])

    assert rec.media_count == 2
    assert rec.latitude is None
    assert rec.longitude is None
    assert rec.type == RecommendationType.NEW_TRIP


def test_media_without_any_metadata_never_joins():
    items = [info("a.jpg"), info("b.jpg")]
    assert len(RecommendationClusterer().cluster(items)) == 2


def test_first_matching_album_wins():
    albums = [
        AlbumSummary(id=7, title="Newest Seoul", lat=37.51, lon=127.01),
        AlbumSummary(id=3, title="Older Seoul", lat=37.50, lon=127.00),
    ]
    items = [info("a.jpg", 37.50, 127.00, datetime(2026, 6, 1))]

    [rec] = RecommendationClusterer().analyze(items, albums)

    assert rec.type == RecommendationType.ADD_TO_EXISTING
    assert rec.target_album_id == 7
    assert rec.target_album_title == "Newest Seoul"


def test_album_matches_on_overlapping_dates():
    albums = [
        AlbumSummary(
            id=9,
            title="Jeju week",
            lat=33.4996,
            lon=126.5312,
            start_date=date(2026, 6, 1),
            end_date=date(2026, 6, 1),
        )
    ]
    items = [info("a.jpg", 37.50, 127.00, datetime(2026, 6, 1, 12))]

    [rec] = RecommendationClusterer().analyze(items, albums)

    assert rec.target_album_id == 9


def test_album_without_location_or_dates_never_matches():
    albums = [AlbumSummary(id=1, title="Empty")]
    items = [info("a.jpg", 37.50, 127.00, datetime(2026, 6, 1))]

    [rec] = RecommendationClusterer().analyze(items, albums)

    assert rec.type == RecommendationType.NEW_TRIP


def test_empty_input_gives_no_recommendations():
    assert RecommendationClusterer().analyze([], albums=[]) == []


# --- service ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_empty_request_does_not_touch_albums():
    repo = FakeAlbumRepository()
    service = RecommendationService(repo, RecommendationClusterer())

    response = await service.analyze_and_recommend(1, AnalyzeMediaRequest(media_info_list=[]))

    assert response.recommendations == []
    assert repo.calls == []


@pytest.mark.asyncio
async def test_service_matches_against_user_albums():
    repo = FakeAlbumRepository([AlbumSummary(id=5, title="Seoul", lat=37.5, lon=127.0)])
    service = RecommendationService(repo, RecommendationClusterer())
    req = AnalyzeMediaRequest(media_info_list=[info("a.jpg", 37.5, 127.0, datetime(2026, 6, 1))])

    response = await service.analyze_and_recommend(42, req)

    assert repo.calls == [42]
    assert response.recommendations[0].target_album_id == 5


# --- album repository ---------------------------------------------------------


@pytest_asyncio.fixture
async def session(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'albums.db'}")
    await init_models(engine)
    factory = make_session_factory(engine)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.mark.asyncio
async def test_albums_are_listed_newest_first_per_user(session):
    session.add_all(
        [
            Album(id=1, user_id=1, title="old", created_at=datetime(2026, 1, 1)),
            Album(id=2, user_id=1, title="new", latitude=37.5, longitude=127.0, created_at=datetime(2026, 5, 1)),
            Album(id=3, user_id=2, title="someone else", created_at=datetime(2026, 6, 1)),
        ]
    )
    await session.commit()

    albums = await AlbumRepository(session).find_by_user_id_order_by_created_at_desc(1)

    assert [a.title for a in albums] == ["new", "old"]
    assert albums[0].lat == 37.5
    assert albums[0].lon == 127.0


# --- HTTP ---------------------------------------------------------------------


@pytest.fixture
def client():
    repo = FakeAlbumRepository([AlbumSummary(id=5, title="Seoul", lat=37.5, lon=127.0)])
    app.dependency_overrides[get_recommendation_service] = lambda: RecommendationService(
        repo, RecommendationClusterer()
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_analyze_endpoint_speaks_camel_case(client):
    body = {
        "mediaInfoList": [
            {"filename": "a.jpg", "latitude": 37.5, "longitude": 127.0, "takenAt": "2026-06-01T10:00:00"},
            {"filename": "b.jpg", "latitude": 37.501, "longitude": 127.001, "takenAt": "2026-06-02T10:00:00"},
        ]
    }

    resp = client.post("/api/v1/recommendations/analyze", json=body, headers={"X-User-Id": "1"})

    assert resp.status_code == 200
    [rec] = resp.json()["recommendations"]
    assert rec["type"] == "ADD_TO_EXISTING"
    assert rec["mediaCount"] == 2
    assert rec["targetAlbumId"] == 5
    assert rec["targetAlbumTitle"] == "Seoul"
    assert rec["previewFilenames"] == ["a.jpg", "b.jpg"]
    assert rec["startDate"] == "2026-06-01"
    assert rec["endDate"] == "2026-06-02"


def test_analyze_endpoint_requires_user_header(client):
    resp = client.post("/api/v1/recommendations/analyze", json={"mediaInfoList": []})

    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_REQUEST"


def test_analyze_endpoint_with_empty_list(client):
    resp = client.post("/api/v1/recommendations/analyze", json={"mediaInfoList": []}, headers={"X-User-Id": "1"})

    assert resp.status_code == 200
    assert resp.json() == {"recommendations": []}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
