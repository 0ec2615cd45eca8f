"""Tests for the HTTP API."""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from blog_search.api.main import create_app


@pytest.fixture
def client(db_path, db):
    with TestClient(create_app(db_path)) as test_client:
        yield test_client


@pytest.fixture
def articles(add_article, storage):
    garden = storage.save_tag("garden")
    ids = {
        "soup": add_article(
            "Tomato soup",
            day=date(2024, 1, 1),
            category="Recipes",
            tags=(garden,),
            content={"blocks": [{"type": "paragraph", "data": {"text": "Tomatoes and basil"}}]},
        ),
        "salad": add_article("Tomato salad", day=date(2024, 2, 1), category="Recipes", tags=(garden,)),
        "trains": add_article("Night trains", day=date(2024, 3, 1), category="Travel"),
    }
    ids["garden_tag"] = garden
    return ids


class TestSearchEndpoint:
    def test_all_articles(self, client: TestClient, articles) -> None:
        response = client.get("/api/v1/articles")
        assert response.status_code == 200

        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 1
        assert body["page"] == 1
        assert [a["id"] for a in body["articles"]] == [
            articles["trains"], articles["salad"], articles["soup"]
        ]

    def test_term(self, client: TestClient, articles) -> None:
        body = client.get("/api/v1/articles", params={"term": "tomato"}).json()
        assert {a["id"] for a in body["articles"]} == {articles["soup"], articles["salad"]}
        assert all(a["text_rank"] > 0 for a in body["articles"])

    def test_tags_comma_separated_or_repeated(self, client: TestClient, articles) -> None:
        tag = articles["garden_tag"]
        joined = client.get("/api/v1/articles", params={"tags": f"{tag},999"}).json()
        repeated = client.get("/api/v1/articles", params=[("tags", str(tag)), ("tags", "999")]).json()

        assert joined == repeated
        assert joined["total"] == 2
        assert all(a["tag_match_count"] == 1 for a in joined["articles"])

    @pytest.mark.parametrize("page", ["0", "-1", "abc"])
    def test_bad_page_is_first(self, client: TestClient, articles, page: str) -> None:
        body = client.get("/api/v1/articles", params={"page": page}).json()
        assert body["page"] == 1
        assert body["total"] == 3

    def test_bad_category_ignored(self, client: TestClient, articles) -> None:
        body = client.get("/api/v1/articles", params={"category": "x"}).json()
        assert body["total"] == 3

    def test_out_of_range_values_reset(self, client: TestClient, articles) -> None:
        huge = str(10 ** 20)
        response = client.get("/api/v1/articles", params={"category": huge, "page": huge})
        assert response.status_code == 200
        assert response.json()["page"] == 1
        assert response.json()["total"] == 3


class TestArticleEndpoints:
    def test_detail(self, client: TestClient, articles) -> None:
        response = client.get(f"/api/v1/articles/{articles['salad']}")
        assert response.status_code == 200

        body = response.json()
        assert body["article"]["title"] == "Tomato salad"
        assert body["article"]["date"] == "2024-02-01"
        assert body["category"]["name"] == "Recipes"
        assert [t["name"] for t in body["tags"]] == ["garden"]
        assert body["previous"]["id"] == articles["soup"]
        assert body["next"]["id"] == articles["trains"]
        assert [a["id"] for a in body["similar"]] == [articles["soup"]]

    def test_detail_content_decoded(self, client: TestClient, articles) -> None:
        body = client.get(f"/api/v1/articles/{articles['soup']}").json()
        assert body["content"]["blocks"][0]["data"]["text"] == "Tomatoes and basil"
        assert body["previous"] is None

    def test_missing_article(self, client: TestClient, articles) -> None:
        response = client.get("/api/v1/articles/9999")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        assert response.json()["details"] == {"article_id": 9999}

    def test_similar(self, client: TestClient, articles) -> None:
        response = client.get(f"/api/v1/articles/{articles['soup']}/similar")
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [articles["salad"]]

    def test_similar_missing(self, client: TestClient, articles) -> None:
        assert client.get("/api/v1/articles/9999/similar").status_code == 404

    def test_unstorable_id_not_found(self, client: TestClient, articles) -> None:
        huge = 10 ** 20
        response = client.get(f"/api/v1/articles/{huge}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        assert client.get(f"/api/v1/articles/{huge}/similar").status_code == 404


class TestSidebarEndpoint:
    def test_sidebar(self, client: TestClient, articles) -> None:
        body = client.get("/api/v1/sidebar").json()
        assert [c["name"] for c in body["categories"]] == ["Recipes", "Travel"]
        assert [t["name"] for t in body["tags"]] == ["garden"]
        assert [a["id"] for a in body["recent"]] == [
            articles["trains"], articles["salad"], articles["soup"]
        ]

    def test_sidebar_failure(self, client: TestClient, db, articles) -> None:
        conn = db.connect()
        conn.execute("DROP TABLE article_tags")
        conn.execute("DROP TABLE tags")
        conn.commit()

        response = client.get("/api/v1/sidebar")
        assert response.status_code == 500
        assert response.json()["code"] == "SIDEBAR_FAILED"
        assert response.json()["details"]["stage"] == "sidebar.tags"


class TestHealthEndpoint:
    def test_healthy(self, client: TestClient, articles) -> None:
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["database_connected"] is True
        assert body["total_articles"] == 3

    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json()["endpoints"]["search"] == "/api/v1/articles"
