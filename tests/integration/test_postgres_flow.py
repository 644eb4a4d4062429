"""
End-to-end checks against a real PostgreSQL.

Set TEST_DATABASE_URL to a scratch database; the schema is dropped and
recreated for every test.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import replace
from pathlib import Path

import asyncpg
import pytest
from fastapi.testclient import TestClient

from core.config import load_settings
from main import create_app
from restaurants import repository as restaurant_repository
from verification import repository as verification_repository

DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "").strip()
MIGRATION = Path(__file__).resolve().parents[2] / "db" / "migrations" / "20240601120000_create_restaurant_schema.sql"

pytestmark = pytest.mark.skipif(not DATABASE_URL, reason="TEST_DATABASE_URL is not set.")


def _run_sql(sql: str):
    async def run():
        conn = await asyncpg.connect(DATABASE_URL)
        try:
            return await conn.fetchval(sql) if sql.lstrip().upper().startswith("SELECT") else await conn.execute(sql)
        finally:
            await conn.close()

    return asyncio.run(run())


@pytest.fixture
def client():
    up, down = MIGRATION.read_text().split("-- migrate:down")
    _run_sql(down)
    _run_sql(up.replace("-- migrate:up", ""))

    settings = replace(load_settings(), database_url=DATABASE_URL, connect_retry_delay_s=0.1)
    with TestClient(create_app(settings=settings)) as test_client:
        yield test_client


def _create(client, name="Taizu", is_kosher=False, cuisines=("Asian",)) -> str:
    response = client.post("/restaurants", json={"name": name, "isKosher": is_kosher, "cuisines": list(cuisines)})
    assert response.status_code == 201
    return response.json()["id"]


def test_unknown_restaurant_is_not_found_everywhere(client):
    assert client.get("/restaurants/999").status_code == 404
    assert client.put("/restaurants/999", json={"name": "x"}).status_code == 404
    assert client.delete("/restaurants/999").status_code == 404
    assert client.get("/restaurants/999/dishes").status_code == 404
    assert client.post("/restaurants/999/dishes", json={"name": "a", "description": "b", "price": 1}).status_code == 404
    assert client.put("/restaurants/999/dishes/1", json={"price": 1}).status_code == 404
    assert client.delete("/restaurants/999/dishes/1").status_code == 404
    assert client.post("/ratings", json={"restaurantId": 999, "rating": 3}).status_code == 404


def test_duplicate_cuisines_create_one_link(client):
    restaurant_id = _create(client, cuisines=["Italian", "Italian"])

    assert client.get(f"/restaurants/{restaurant_id}").json()["cuisines"] == ["Italian"]
    assert _run_sql(f"SELECT count(*) FROM restaurant_cuisines WHERE restaurant_id = {int(restaurant_id)}") == 1


def test_cuisine_rows_are_shared(client):
    _create(client, name="A", cuisines=["Italian"])
    _create(client, name="B", cuisines=["Italian", "Pizza"])

    assert _run_sql("SELECT count(*) FROM cuisines WHERE name = 'Italian'") == 1


def test_average_rating(client):
    restaurant_id = _create(client)

    assert client.get(f"/restaurants/{restaurant_id}").json()["averageRating"] == -1

    for value in (3, 5):
        assert client.post("/ratings", json={"restaurantId": int(restaurant_id), "rating": value}).status_code == 200
    assert client.get(f"/restaurants/{restaurant_id}").json()["averageRating"] == 4.0

    client.post("/ratings", json={"restaurantId": int(restaurant_id), "rating": 4})
    assert client.get(f"/restaurants/{restaurant_id}").json()["averageRating"] == 4.0


def test_average_is_rounded_to_two_digits(client):
    restaurant_id = _create(client)
    for value in (1, 2, 2):
        client.post("/ratings", json={"restaurantId": int(restaurant_id), "rating": value})

    assert client.get(f"/restaurants/{restaurant_id}").json()["averageRating"] == 1.67


def test_rating_of_zero_is_distinct_from_no_ratings(client):
    rated = _create(client, name="Rated")
    unrated = _create(client, name="Unrated")
    client.post("/ratings", json={"restaurantId": int(rated), "rating": 0})

    by_id = {r["id"]: r for r in client.get("/restaurants").json()}
    assert by_id[rated]["averageRating"] == 0
    assert by_id[unrated]["averageRating"] == -1


def test_cuisine_filter_reports_all_cuisines(client):
    sushi = _create(client, name="Taizu", cuisines=["Asian", "Sushi"])
    _create(client, name="Luigi", cuisines=["Italian"])
    _create(client, name="Bare", cuisines=[])

    restaurants = client.get("/restaurants", params={"cuisine": "Sushi"}).json()

    assert [r["id"] for r in restaurants] == [sushi]
    assert restaurants[0]["cuisines"] == ["Asian", "Sushi"]
    assert len(client.get("/restaurants").json()) == 3


def test_cuisine_filter_matches_trimmed_names(client):
    sushi = _create(client, cuisines=[" Sushi "])

    restaurants = client.get("/restaurants", params={"cuisine": "Sushi "}).json()

    assert [r["id"] for r in restaurants] == [sushi]
    assert restaurants[0]["cuisines"] == ["Sushi"]


def test_restaurant_without_cuisines_lists_empty(client):
    restaurant_id = _create(client, cuisines=[])

    body = client.get(f"/restaurants/{restaurant_id}").json()

    assert body["cuisines"] == []
    assert body["dishes"] == []


def test_clearing_cuisines(client):
    restaurant_id = _create(client, cuisines=["Asian", "Sushi"])

    assert client.put(f"/restaurants/{restaurant_id}", json={"cuisines": []}).status_code == 200

    assert client.get(f"/restaurants/{restaurant_id}").json()["cuisines"] == []


def test_partial_restaurant_update(client):
    restaurant_id = _create(client, name="Old", is_kosher=False, cuisines=["Asian"])

    client.put(f"/restaurants/{restaurant_id}", json={"isKosher": True})

    body = client.get(f"/restaurants/{restaurant_id}").json()
    assert (body["name"], body["isKosher"], body["cuisines"]) == ("Old", True, ["Asian"])


def test_delete_cascades(client):
    restaurant_id = _create(client)
    client.post(f"/restaurants/{restaurant_id}/dishes", json={"name": "Ramen", "description": "Hot", "price": 12})
    client.post("/ratings", json={"restaurantId": int(restaurant_id), "rating": 5})

    assert client.delete(f"/restaurants/{restaurant_id}").status_code == 204

    assert client.get(f"/restaurants/{restaurant_id}/dishes").status_code == 404
    assert _run_sql("SELECT count(*) FROM dishes") == 0
    assert _run_sql("SELECT count(*) FROM ratings") == 0
    assert _run_sql("SELECT count(*) FROM restaurant_cuisines") == 0
    assert _run_sql("SELECT count(*) FROM cuisines") == 1


def test_dish_lifecycle(client):
    restaurant_id = _create(client)
    other_id = _create(client, name="Other")
    dish_id = client.post(
        f"/restaurants/{restaurant_id}/dishes",
        json={"name": "Ramen", "description": "Hot", "price": 12.5},
    ).json()["id"]

    assert client.put(f"/restaurants/{restaurant_id}/dishes/{dish_id}", json={"price": 14}).status_code == 200
    assert client.get(f"/restaurants/{restaurant_id}/dishes").json() == [
        {"id": dish_id, "name": "Ramen", "description": "Hot", "price": 14.0}
    ]

    assert client.put(f"/restaurants/{other_id}/dishes/{dish_id}", json={"price": 1}).status_code == 404
    assert client.delete(f"/restaurants/{other_id}/dishes/{dish_id}").status_code == 404

    assert client.delete(f"/restaurants/{restaurant_id}/dishes/{dish_id}").status_code == 204
    assert client.get(f"/restaurants/{restaurant_id}/dishes").json() == []


def test_failed_update_rolls_back_every_field(client, monkeypatch):
    restaurant_id = _create(client, name="Before", cuisines=["Asian"])

    async def failing_link(conn, restaurant_id, cuisine_ids):
        raise asyncpg.UniqueViolationError("injected failure")

    monkeypatch.setattr(restaurant_repository, "link_cuisines", failing_link)

    response = client.put(
        f"/restaurants/{restaurant_id}",
        json={"name": "After", "isKosher": True, "cuisines": ["Thai"]},
    )

    assert response.status_code == 400
    body = client.get(f"/restaurants/{restaurant_id}").json()
    assert (body["name"], body["isKosher"], body["cuisines"]) == ("Before", False, ["Asian"])
    assert _run_sql("SELECT count(*) FROM cuisines WHERE name = 'Thai'") == 0


def test_rating_values_are_not_range_limited(client):
    restaurant_id = _create(client, cuisines=[])

    assert client.post("/ratings", json={"restaurantId": int(restaurant_id), "rating": 7.5}).status_code == 200
    assert client.get(f"/restaurants/{restaurant_id}").json()["averageRating"] == 7.5


def test_verified_restaurant_cannot_be_deleted_until_commit(client):
    restaurant_id = int(_create(client, cuisines=[]))

    async def run():
        holder = await asyncpg.connect(DATABASE_URL)
        other = await asyncpg.connect(DATABASE_URL)
        try:
            async with holder.transaction():
                assert await verification_repository.restaurant_exists(holder, restaurant_id)
                await other.execute("SET lock_timeout = '200ms'")
                with pytest.raises(asyncpg.LockNotAvailableError):
                    await other.execute("DELETE FROM restaurants WHERE id = $1", restaurant_id)
        finally:
            await holder.close()
            await other.close()

    asyncio.run(run())
    assert client.get(f"/restaurants/{restaurant_id}").status_code == 200


def test_verified_dish_is_locked_against_concurrent_delete(client):
    restaurant_id = int(_create(client, cuisines=[]))
    dish_id = int(
        client.post(
            f"/restaurants/{restaurant_id}/dishes",
            json={"name": "Soup", "description": "Warm", "price": 5},
        ).json()["id"]
    )

    async def run():
        holder = await asyncpg.connect(DATABASE_URL)
        other = await asyncpg.connect(DATABASE_URL)
        try:
            async with holder.transaction():
                assert await verification_repository.dish_belongs_to_restaurant(holder, dish_id, restaurant_id)
                await other.execute("SET lock_timeout = '200ms'")
                with pytest.raises(asyncpg.LockNotAvailableError):
                    await other.execute("DELETE FROM restaurants WHERE id = $1", restaurant_id)
        finally:
            await holder.close()
            await other.close()

    asyncio.run(run())
    assert client.get(f"/restaurants/{restaurant_id}/dishes").json()[0]["id"] == str(dish_id)
