"""Tests for /api/v1/projects CRUD endpoints."""

import uuid

import pytest
from httpx import AsyncClient

from app.services.project_service import PROJECT_COLORS

pytestmark = pytest.mark.asyncio


class TestCreateProject:
    async def test_create_with_color(self, client: AsyncClient, free_user):
        _, headers = free_user
        response = await client.post(
            "/api/v1/projects",
            json={"name": "Dotfiles", "description": "Shell config", "color": "#10B981"},
            headers=headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Dotfiles"
        assert data["description"] == "Shell config"
        assert data["color"] == "#10B981"
        assert data["snippet_count"] == 0
        assert "id" in data

    async def test_create_picks_palette_color(self, client: AsyncClient, free_user):
        _, headers = free_user
        response = await client.post("/api/v1/projects", json={"name": "No color"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["color"] in PROJECT_COLORS

    async def test_invalid_color_rejected(self, client: AsyncClient, free_user):
        _, headers = free_user
        response = await client.post(
            "/api/v1/projects", json={"name": "Bad", "color": "blue"}, headers=headers
        )
        assert response.status_code == 422

    async def test_empty_name_rejected(self, client: AsyncClient, free_user):
        _, headers = free_user
        response = await client.post("/api/v1/projects", json={"name": ""}, headers=headers)
        assert response.status_code == 422

    async def test_free_plan_limit(self, client: AsyncClient, free_user):
        _, headers = free_user
        for i in range(3):
            response = await client.post("/api/v1/projects", json={"name": f"P{i}"}, headers=headers)
            assert response.status_code == 201

        response = await client.post("/api/v1/projects", json={"name": "P3"}, headers=headers)
        assert response.status_code == 402
        detail = response.json()["detail"]
        assert detail["limit"] == 3
        assert detail["current"] == 3
        assert detail["plan"] == "FREE"

    async def test_pro_plan_has_no_limit(self, client: AsyncClient, pro_user):
        _, headers = pro_user
        for i in range(5):
            response = await client.post("/api/v1/projects", json={"name": f"P{i}"}, headers=headers)
            assert response.status_code == 201

    async def test_no_auth(self, client: AsyncClient):
        response = await client.post("/api/v1/projects", json={"name": "X"})
        assert response.status_code == 401


class TestReadProjects:
    async def test_list_includes_snippet_counts(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        for i in range(2):
            await client.post(
                "/api/v1/snippets",
                json={"title": f"s{i}", "code": "x", "language": "go", "project_id": test_project["id"]},
                headers=headers,
            )
        await client.post("/api/v1/projects", json={"name": "Empty"}, headers=headers)

        response = await client.get("/api/v1/projects", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        counts = {p["name"]: p["snippet_count"] for p in data["items"]}
        assert counts == {"Test Project": 2, "Empty": 0}

    async def test_list_only_own_projects(self, client: AsyncClient, free_user, test_project):
        _, headers = free_user
        response = await client.get("/api/v1/projects", headers=headers)
        assert response.json() == {"items": [], "total": 0}

    async def test_get_by_id(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        response = await client.get(f"/api/v1/projects/{test_project['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Test Project"

    async def test_get_other_users_project_is_404(self, client: AsyncClient, free_user, test_project):
        _, headers = free_user
        response = await client.get(f"/api/v1/projects/{test_project['id']}", headers=headers)
        assert response.status_code == 404

    async def test_get_missing_is_404(self, client: AsyncClient, pro_user):
        _, headers = pro_user
        response = await client.get(f"/api/v1/projects/{uuid.uuid4()}", headers=headers)
        assert response.status_code == 404

    async def test_stats(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        await client.post(
            "/api/v1/snippets",
            json={"title": "in", "code": "x", "language": "go", "project_id": test_project["id"]},
            headers=headers,
        )
        await client.post(
            "/api/v1/snippets", json={"title": "loose", "code": "x", "language": "go"}, headers=headers
        )

        response = await client.get("/api/v1/projects/stats", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_projects"] == 1
        assert data["snippets_per_project"][test_project["id"]] == 1
        assert data["snippets_per_project"]["no-project"] == 1


class TestUpdateProject:
    async def test_partial_update(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        response = await client.put(
            f"/api/v1/projects/{test_project['id']}",
            json={"name": "Renamed"},
            headers=headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["description"] == test_project["description"]
        assert data["color"] == test_project["color"]

    async def test_null_name_is_ignored(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        response = await client.put(
            f"/api/v1/projects/{test_project['id']}",
            json={"name": None, "description": None},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Test Project"
        assert response.json()["description"] is None

    async def test_other_users_project_is_404(self, client: AsyncClient, free_user, test_project):
        _, headers = free_user
        response = await client.put(
            f"/api/v1/projects/{test_project['id']}", json={"name": "Mine"}, headers=headers
        )
        assert response.status_code == 404


class TestDeleteProject:
    async def test_delete_keeps_snippets(self, client: AsyncClient, pro_user, test_project):
        _, headers = pro_user
        created = await client.post(
            "/api/v1/snippets",
            json={
                "title": "Survivor",
                "code": "x",
                "language": "go",
                "project_id": test_project["id"],
                "is_public": True,
            },
            headers=headers,
        )
        snippet_id = created.json()["id"]

        response = await client.delete(f"/api/v1/projects/{test_project['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Project deleted"}

        snippet = await client.get(f"/api/v1/snippets/{snippet_id}", headers=headers)
        assert snippet.status_code == 200
        assert snippet.json()["project_id"] is None

        gone = await client.get(f"/api/v1/projects/{test_project['id']}", headers=headers)
        assert gone.status_code == 404

    async def test_delete_frees_quota(self, client: AsyncClient, free_user):
        _, headers = free_user
        ids = []
        for i in range(3):
            response = await client.post("/api/v1/projects", json={"name": f"P{i}"}, headers=headers)
            ids.append(response.json()["id"])

        await client.delete(f"/api/v1/projects/{ids[0]}", headers=headers)
        response = await client.post("/api/v1/projects", json={"name": "Again"}, headers=headers)
        assert response.status_code == 201

    async def test_other_users_project_is_404(self, client: AsyncClient, free_user, test_project):
        _, headers = free_user
        response = await client.delete(f"/api/v1/projects/{test_project['id']}", headers=headers)
        assert response.status_code == 404
