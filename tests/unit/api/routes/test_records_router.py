"""Unit tests for the records router."""

import json

import pytest
import pytest_asyncio
from fastapi import status


@pytest_asyncio.fixture
async def record_ids(client):
    await client.post(
        "/api/v1/collections",
        json={
            "slug": "products",
            "fields": [
                {"name": "title", "type": "text", "required": True},
                {"name": "in_stock", "type": "boolean", "default_value": True},
            ],
        },
    )
    ids = []
    for title in ["Red Lamp", "Oak Desk", "Desk Lamp"]:
        response = await client.post("/api/v1/collections/products/records", json={"values": {"title": title}})
        ids.append(response.json()["id"])
    return ids


@pytest.mark.asyncio
class TestRecordCrud:
    async def test_create_record(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records", json={"values": {"title": "Chair"}}
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["values"] == {"title": "Chair", "in_stock": True}

    async def test_create_invalid_record(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records", json={"values": {"in_stock": "yes"}}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidRecord"

    async def test_update_record(self, client, record_ids):
        response = await client.put(
            f"/api/v1/collections/products/records/{record_ids[0]}",
            json={"values": {"title": "Blue Lamp", "in_stock": False}},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["values"]["title"] == "Blue Lamp"

    async def test_delete_record(self, client, record_ids):
        deleted = await client.delete(f"/api/v1/collections/products/records/{record_ids[0]}")
        again = await client.delete(f"/api/v1/collections/products/records/{record_ids[0]}")
        count = await client.get("/api/v1/collections/products/records/count")

        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert again.status_code == status.HTTP_404_NOT_FOUND
        assert count.json() == {"count": 2}


@pytest.mark.asyncio
class TestRecordListing:
    async def test_list_with_search(self, client, record_ids):
        response = await client.get("/api/v1/collections/products/records", params={"q": "lamp"})

        data = response.json()
        assert [r["values"]["title"] for r in data["items"]] == ["Red Lamp", "Desk Lamp"]
        assert data["total"] == 2
        assert data["query_string"] == "q=lamp"

    async def test_default_state_has_empty_query_string(self, client, record_ids):
        response = await client.get(
            "/api/v1/collections/products/records", params={"category": "all", "page": 1}
        )

        assert response.json()["query_string"] == ""
        assert response.json()["total"] == 3

    async def test_filter_and_category(self, client, record_ids):
        await client.put(
            f"/api/v1/collections/products/records/{record_ids[2]}",
            json={"values": {"title": "Desk Lamp", "in_stock": False}},
        )

        response = await client.get(
            "/api/v1/collections/products/records",
            params={"q": "desk", "category": "title", "filter": "in_stock=true"},
        )

        assert [r["values"]["title"] for r in response.json()["items"]] == ["Oak Desk"]

    async def test_invalid_filter(self, client, record_ids):
        response = await client.get(
            "/api/v1/collections/products/records", params={"filter": "colour=red"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "InvalidRequest"

    async def test_page_must_be_positive(self, client, record_ids):
        response = await client.get("/api/v1/collections/products/records", params={"page": 0})

        assert response.status_code == 422

    async def test_sort_descending(self, client, record_ids):
        response = await client.get(
            "/api/v1/collections/products/records", params={"sort": "-title", "q": "lamp"}
        )

        data = response.json()
        assert [r["values"]["title"] for r in data["items"]] == ["Red Lamp", "Desk Lamp"]
        assert data["query_string"] == "q=lamp&sort=-title"

    async def test_unknown_sort_field(self, client, record_ids):
        response = await client.get(
            "/api/v1/collections/products/records", params={"sort": "colour"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "InvalidRequest"


@pytest.mark.asyncio
class TestBulkEndpoint:
    async def test_bulk_delete(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": record_ids[:2], "kind": "delete"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert sorted(data["succeeded"]) == sorted(record_ids[:2])
        assert data["failed_count"] == 0

    async def test_bulk_partial_failure_is_multi_status(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": [record_ids[0], "missing"], "kind": "duplicate"},
        )

        assert response.status_code == status.HTTP_207_MULTI_STATUS
        data = response.json()
        assert data["succeeded"] == [record_ids[0]]
        assert data["failed"]["missing"]["code"] == "NotFound"
        assert record_ids[0] in data["created"]

    async def test_bulk_export_json(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": record_ids, "kind": "export"},
        )

        rows = json.loads(response.json()["payload"])
        assert [row["id"] for row in rows] == sorted(record_ids)

    async def test_bulk_unknown_collection(self, client):
        response = await client.post(
            "/api/v1/collections/missing/records/bulk",
            json={"ids": ["a"], "kind": "delete"},
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_bulk_requires_ids(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk", json={"ids": [], "kind": "delete"}
        )

        assert response.status_code == 422

    async def test_bulk_update(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": record_ids[:2], "kind": "update", "values": {"in_stock": False}},
        )
        listing = await client.get(
            "/api/v1/collections/products/records", params={"filter": "in_stock=false"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert sorted(response.json()["succeeded"]) == sorted(record_ids[:2])
        assert [r["id"] for r in listing.json()["items"]] == record_ids[:2]

    async def test_bulk_update_without_values(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": record_ids[:1], "kind": "update"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "InvalidRequest"

    async def test_bulk_update_with_invalid_values(self, client, record_ids):
        response = await client.post(
            "/api/v1/collections/products/records/bulk",
            json={"ids": record_ids[:1], "kind": "update", "values": {"in_stock": "no"}},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidRecord"
