"""Webservice API tests with an in-memory tours collection."""

from __future__ import annotations

from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from natours.commons.daos.tour_dao import HIDDEN_TOURS_FILTER, TourDAO
from natours.webservice.deps import get_tour_dao
from natours.webservice.main import create_app
from tests.fake_mongo import FakeCollection
from tests.sample_tours import sample_tours, visible_names_by_recency

NEW_TOUR = {
    "name": "  The Desert Runner  ",
    "duration": 14,
    "maxGroupSize": 12,
    "difficulty": "medium",
    "price": 1200,
    "priceDiscount": 200,
    "summary": "Running across dunes",
    "imageCover": "desert.jpg",
    "startDates": ["2025-03-01T09:00:00Z"],
}


def build_client(aggregate_result=None, **client_kwargs) -> tuple[TestClient, FakeCollection]:
    app = create_app()
    collection = FakeCollection(sample_tours(), aggregate_result=aggregate_result)
    dao = TourDAO(collection=collection)
    app.dependency_overrides[get_tour_dao] = lambda: dao
    return TestClient(app, **client_kwargs), collection


def _visible_id(collection, index=0):
    return str([d for d in collection.docs if not d["secretTour"]][index]["_id"])


def _secret_id(collection):
    return str(next(d["_id"] for d in collection.docs if d["secretTour"]))


def test_root_and_openapi_endpoints():
    client, _ = build_client()

    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["service"] == "natours-webservice"

    assert client.get("/openapi.json").status_code == 200
    assert client.get("/docs").status_code == 200


def test_health_endpoints():
    client, collection = build_client()
    assert client.get("/api/v1/health/live").json() == {"status": "ok"}
    assert client.get("/api/v1/health/ready").json() == {"status": "ready"}
    assert collection.database.commands == ["ping"]

    collection.database.fail_with = ServerSelectionTimeoutError("no servers")
    rs = client.get("/api/v1/health/ready")
    assert rs.status_code == 503


def test_list_without_params_returns_newest_first_without_version_marker():
    client, _ = build_client()

    rs = client.get("/api/v1/tours")
    assert rs.status_code == 200
    body = rs.json()
    assert body["status"] == "success"
    assert body["requestedAt"]
    assert body["results"] == 12
    tours = body["data"]["tours"]
    assert [t["name"] for t in tours] == visible_names_by_recency()
    assert all("__v" not in t for t in tours)
    assert all(t["id"] == t["_id"] for t in tours)
    assert tours[-1]["durationWeeks"] == 1.0

    again = client.get("/api/v1/tours").json()["data"]["tours"]
    assert [t["_id"] for t in again] == [t["_id"] for t in tours]


def test_list_filter_sort_fields_and_page():
    client, _ = build_client()

    rs = client.get(
        "/api/v1/tours",
        params={"difficulty": "easy", "sort": "-price", "limit": 3, "page": 1, "fields": "name,price"},
    )
    assert rs.status_code == 200
    body = rs.json()
    assert body["results"] == 3
    tours = body["data"]["tours"]
    assert [t["price"] for t in tours] == [1997, 1497, 1297]
    assert [t["name"] for t in tours] == ["Sample Tour 07", "Sample Tour 04", "Sample Tour 10"]
    for tour in tours:
        assert set(tour) <= {"_id", "id", "name", "price"}
        assert {"name", "price"} <= set(tour)


def test_list_range_operators():
    client, _ = build_client()

    rs = client.get("/api/v1/tours", params={"price[gte]": "1000", "price[lt]": "1500"})
    assert rs.status_code == 200
    prices = sorted(t["price"] for t in rs.json()["data"]["tours"])
    assert prices == [1297, 1497]

    rs = client.get("/api/v1/tours", params={"duration[gt]": "16", "ratingsAverage[lte]": "4.5"})
    names = sorted(t["name"] for t in rs.json()["data"]["tours"])
    assert names == ["Sample Tour 12"]


def test_list_multi_key_sort_breaks_ties():
    client, _ = build_client()

    rs = client.get("/api/v1/tours", params={"sort": "-ratingsAverage,price", "fields": "ratingsAverage,price"})
    tours = rs.json()["data"]["tours"]
    pairs = [(t["ratingsAverage"], t["price"]) for t in tours]
    assert pairs == sorted(pairs, key=lambda p: (-p[0], p[1]))
    assert pairs[:3] == [(4.9, 297), (4.8, 397), (4.8, 497)]


def test_list_pagination():
    client, _ = build_client()

    rs = client.get("/api/v1/tours", params={"page": 2, "limit": 5})
    names = [t["name"] for t in rs.json()["data"]["tours"]]
    assert names == visible_names_by_recency()[5:10]

    rs = client.get("/api/v1/tours", params={"page": 4, "limit": 5})
    assert rs.status_code == 200
    assert rs.json()["results"] == 0
    assert rs.json()["data"]["tours"] == []

    rs = client.get("/api/v1/tours", params={"page": "x", "limit": "y"})
    assert rs.json()["results"] == 12


def test_list_never_returns_secret_tours():
    client, collection = build_client()

    rs = client.get("/api/v1/tours", params={"secretTour": "true"})
    assert rs.status_code == 200
    assert rs.json()["results"] == 0
    assert collection.queries[-1]["$and"][0] == HIDDEN_TOURS_FILTER

    rs = client.get("/api/v1/tours", params={"price[gte]": "5000"})
    assert rs.json()["results"] == 0


def test_list_bad_filter_value_is_400():
    client, _ = build_client()

    rs = client.get("/api/v1/tours", params={"price[gte]": "lots"})
    assert rs.status_code == 400
    assert rs.json()["status"] == "fail"
    assert "Cast to Number failed" in rs.json()["message"]

    rs = client.get("/api/v1/tours", params={"$where": "1"})
    assert rs.status_code == 400


def test_top_five_cheap_alias():
    client, _ = build_client()

    rs = client.get("/api/v1/tours/top-5-cheap")
    assert rs.status_code == 200
    tours = rs.json()["data"]["tours"]
    assert len(tours) == 5
    assert [t["name"] for t in tours][:3] == ["Sample Tour 03", "Sample Tour 05", "Sample Tour 01"]
    assert set(tours[0]) <= {"_id", "id", "name", "price", "ratingsAverage", "summary", "difficulty"}


def test_get_tour_by_id():
    client, collection = build_client()

    tour_id = _visible_id(collection)
    rs = client.get(f"/api/v1/tours/{tour_id}")
    assert rs.status_code == 200
    assert rs.json()["data"]["tour"]["name"] == "Sample Tour 01"

    rs = client.get(f"/api/v1/tours/{ObjectId()}")
    assert rs.status_code == 404
    assert rs.json() == {"status": "fail", "message": "No tour found with that ID"}

    assert client.get(f"/api/v1/tours/{_secret_id(collection)}").status_code == 404

    rs = client.get("/api/v1/tours/not-an-id")
    assert rs.status_code == 400
    assert rs.json()["status"] == "fail"


def test_create_tour():
    client, collection = build_client()

    rs = client.post("/api/v1/tours", json=NEW_TOUR)
    assert rs.status_code == 201
    tour = rs.json()["data"]["tour"]
    assert tour["name"] == "The Desert Runner"
    assert tour["slug"] == "the-desert-runner"
    assert tour["ratingsAverage"] == 4.5
    assert tour["ratingsQuantity"] == 0
    assert tour["secretTour"] is False
    assert tour["durationWeeks"] == 2.0
    assert "__v" not in tour
    assert len(collection.docs) == 14

    rs = client.post("/api/v1/tours", json=NEW_TOUR)
    assert rs.status_code == 400
    assert "Duplicate field value" in rs.json()["message"]


def test_create_tour_validation_failures():
    client, _ = build_client()

    rs = client.post("/api/v1/tours", json={**NEW_TOUR, "difficulty": "extreme"})
    assert rs.status_code == 400
    assert rs.json()["status"] == "fail"
    assert "Difficulty is either easy, medium or difficult" in rs.json()["message"]

    payload = dict(NEW_TOUR)
    del payload["name"]
    rs = client.post("/api/v1/tours", json=payload)
    assert rs.status_code == 400
    assert "A tour must have a name" in rs.json()["message"]

    rs = client.post("/api/v1/tours", json={**NEW_TOUR, "priceDiscount": 5000})
    assert rs.status_code == 400
    assert "The discount price cannot exceed the price of the tour." in rs.json()["message"]

    rs = client.post("/api/v1/tours", json={**NEW_TOUR, "name": "Tiny"})
    assert "at least 5 characters" in rs.json()["message"]

    rs = client.post("/api/v1/tours", json={**NEW_TOUR, "ratingsAverage": 6})
    assert "A rating must be below 5.0" in rs.json()["message"]


def test_update_tour():
    client, collection = build_client()
    tour_id = _visible_id(collection)

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"price": 550, "name": "Renamed Sample Tour"})
    assert rs.status_code == 200
    tour = rs.json()["data"]["tour"]
    assert tour["price"] == 550
    assert tour["slug"] == "renamed-sample-tour"
    assert tour["difficulty"] == "easy"

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"priceDiscount": 600})
    assert rs.status_code == 400
    assert "discount price" in rs.json()["message"]

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"difficulty": "hard"})
    assert rs.status_code == 400

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"ratingsAverage": None})
    assert rs.status_code == 400
    assert "ratingsAverage cannot be null" in rs.json()["message"]

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"price": None})
    assert rs.status_code == 400
    assert "A tour must have a price" in rs.json()["message"]

    rs = client.patch(f"/api/v1/tours/{tour_id}", json={"description": None})
    assert rs.status_code == 200

    stored = next(d for d in collection.docs if str(d["_id"]) == tour_id)
    assert stored["ratingsAverage"] == 4.8
    assert stored["price"] == 550

    assert client.patch(f"/api/v1/tours/{ObjectId()}", json={"price": 1}).status_code == 404
    assert client.patch(f"/api/v1/tours/{_secret_id(collection)}", json={"price": 1}).status_code == 404


def test_delete_tour():
    client, collection = build_client()
    tour_id = _visible_id(collection)

    rs = client.delete(f"/api/v1/tours/{tour_id}")
    assert rs.status_code == 204
    assert rs.content == b""
    assert client.get(f"/api/v1/tours/{tour_id}").status_code == 404

    assert client.delete(f"/api/v1/tours/{tour_id}").status_code == 404
    assert client.delete(f"/api/v1/tours/{_secret_id(collection)}").status_code == 404
    assert len(collection.docs) == 12


def test_tour_stats():
    stats = [{"_id": "EASY", "numTours": 4, "avgPrice": 1000.0}]
    client, collection = build_client(aggregate_result=stats)

    rs = client.get("/api/v1/tours/tour-stats")
    assert rs.status_code == 200
    assert rs.json() == {"status": "success", "data": {"stats": stats}}
    assert collection.pipelines[-1][0] == {"$match": HIDDEN_TOURS_FILTER}
    assert collection.pipelines[-1][1] == {"$match": {"ratingsAverage": {"$gte": 4.5}}}


def test_monthly_plan():
    plan = [{"month": 1, "numTourStarts": 2, "tours": ["Sample Tour 01", "Sample Tour 02"]}]
    client, collection = build_client(aggregate_result=plan)

    rs = client.get("/api/v1/tours/monthly-plan/2024")
    assert rs.status_code == 200
    assert rs.json()["data"]["plan"] == plan
    pipeline = collection.pipelines[-1]
    assert pipeline[0] == {"$match": HIDDEN_TOURS_FILTER}
    assert pipeline[1] == {"$unwind": "$startDates"}

    rs = client.get("/api/v1/tours/monthly-plan/next-year")
    assert rs.status_code == 400
    assert rs.json()["status"] == "fail"

    for year in (0, -5, 10000):
        rs = client.get(f"/api/v1/tours/monthly-plan/{year}")
        assert rs.status_code == 400
        assert rs.json()["status"] == "fail"
        assert "Year must be between" in rs.json()["message"]


def test_plain_value_errors_use_fail_envelope():
    class PickyDAO(TourDAO):
        def aggregate(self, pipeline):
            raise ValueError("bad pipeline input")

    app = create_app()
    app.dependency_overrides[get_tour_dao] = lambda: PickyDAO(collection=FakeCollection())
    client = TestClient(app)

    rs = client.get("/api/v1/tours/tour-stats")
    assert rs.status_code == 400
    assert rs.json() == {"status": "fail", "message": "bad pipeline input"}


def test_list_mixed_field_selection_is_400():
    client, _ = build_client()

    rs = client.get("/api/v1/tours", params={"fields": "name,-price"})
    assert rs.status_code == 400
    assert rs.json()["status"] == "fail"
    assert "cannot mix" in rs.json()["message"]

    rs = client.get("/api/v1/tours", params={"fields": "-price,-summary"})
    assert rs.status_code == 200
    assert all("price" not in t and "summary" not in t for t in rs.json()["data"]["tours"])


def test_unhandled_errors_use_error_envelope():
    class BrokenDAO(TourDAO):
        def aggregate(self, pipeline):
            raise RuntimeError("connection reset")

    app = create_app()
    app.dependency_overrides[get_tour_dao] = lambda: BrokenDAO(collection=FakeCollection())
    client = TestClient(app, raise_server_exceptions=False)

    rs = client.get("/api/v1/tours/tour-stats")
    assert rs.status_code == 500
    assert rs.json() == {"status": "error", "message": "Something went wrong"}
