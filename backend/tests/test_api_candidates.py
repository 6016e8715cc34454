"""Candidate profile endpoint tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.models.candidate import Candidate
from candidate_onboarding.models.user import User


@pytest.mark.api
@pytest.mark.asyncio
class TestCandidateEndpoints:

    async def test_me_without_profile(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.get("/api/v2/candidates/me", headers=auth_headers)

        assert response.status_code == 404

    async def test_me(self, client: AsyncClient, auth_headers: dict, test_candidate: Candidate):
        response = await client.get("/api/v2/candidates/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == test_candidate.id
        assert data["phone"] is None

    async def test_create(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.post(
            "/api/v2/candidates",
            json={"full_name": "Jane Doe", "email": "jane@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["user_id"] == test_user.id

    async def test_create_twice(self, client: AsyncClient, auth_headers: dict, test_candidate: Candidate):
        response = await client.post(
            "/api/v2/candidates",
            json={"full_name": "Jane Doe", "email": "jane@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CANDIDATE_EXISTS"

    async def test_create_for_someone_else(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.post(
            "/api/v2/candidates",
            json={"full_name": "Jane Doe", "email": "jane@example.com", "user_id": "someone-else"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    async def test_create_claims_unowned_profile(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_user: User
    ):
        managed = Candidate(full_name="Jane D.", email="jane@example.com")
        db_session.add(managed)
        await db_session.commit()

        response = await client.post(
            "/api/v2/candidates",
            json={"full_name": "Jane Doe", "email": "jane@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] == managed.id
        assert data["user_id"] == test_user.id


@pytest.mark.api
@pytest.mark.asyncio
class TestCandidateUpdate:

    async def test_partial_update(self, client: AsyncClient, auth_headers: dict, test_candidate: Candidate):
        response = await client.patch(
            f"/api/v2/candidates/{test_candidate.id}",
            json={"phone": "555-0100", "open_to_remote": False, "years_experience": 4},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["phone"] == "555-0100"
        assert data["open_to_remote"] is False
        assert data["years_experience"] == 4

    async def test_omitted_fields_untouched(
        self, client: AsyncClient, auth_headers: dict, test_candidate: Candidate
    ):
        await client.patch(
            f"/api/v2/candidates/{test_candidate.id}",
            json={"location": "Cardiff"},
            headers=auth_headers,
        )
        response = await client.patch(
            f"/api/v2/candidates/{test_candidate.id}",
            json={"bio": "Data engineer"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert data["location"] == "Cardiff"
        assert data["bio"] == "Data engineer"

    async def test_unknown_field_rejected(
        self, client: AsyncClient, auth_headers: dict, test_candidate: Candidate
    ):
        response = await client.patch(
            f"/api/v2/candidates/{test_candidate.id}",
            json={"resume_uploaded": True},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_update_other_users_profile(
        self, client: AsyncClient, other_headers: dict, db_session: AsyncSession, test_candidate: Candidate
    ):
        other = User(auth_user_id="auth|mallory", email="mallory@example.com", name="Mallory")
        db_session.add(other)
        await db_session.commit()

        response = await client.patch(
            f"/api/v2/candidates/{test_candidate.id}",
            json={"phone": "000"},
            headers=other_headers,
        )

        assert response.status_code == 403

    async def test_update_missing(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.patch(
            "/api/v2/candidates/does-not-exist", json={"phone": "1"}, headers=auth_headers
        )

        assert response.status_code == 404
