"""Org admin skill registry API tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.skill import UserSkill
from tests.conftest import SKILLS_REPO


def skills_url(org, suffix=""):
    return f"/api/orgs/{org.id}/admin/skills/{suffix}"


@pytest.mark.asyncio
async def test_list_skills_empty(client: AsyncClient, org, owner_headers):
    resp = await client.get(skills_url(org), headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient, org):
    resp = await client.get(skills_url(org))
    assert resp.status_code == 401

    resp = await client.get(skills_url(org), headers={"X-User-Id": "nobody"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_members_cannot_administer(client: AsyncClient, org, member_headers):
    resp = await client.get(skills_url(org), headers=member_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_skill(client: AsyncClient, org, owner_headers):
    payload = {
        "name": "Foo",
        "description": "Does foo",
        "type": "mandatory",
        "git_url": SKILLS_REPO,
        "git_path": "skills/foo/",
    }
    resp = await client.post(skills_url(org), json=payload, headers=owner_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["path"] == "foo"
    assert data["type"] == "mandatory"
    assert data["org_id"] == org.id
    assert data["enabled"] is True

    resp = await client.post(skills_url(org), json=payload, headers=owner_headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_create_skill_rejects_bad_url(client: AsyncClient, org, owner_headers):
    payload = {"name": "Foo", "git_url": "file:///etc", "git_path": "foo"}
    resp = await client.post(skills_url(org), json=payload, headers=owner_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_scan_repo(client: AsyncClient, org, owner_headers, skills_repo):
    resp = await client.post(skills_url(org, "scan"), json={"git_url": skills_repo}, headers=owner_headers)
    assert resp.status_code == 200
    results = sorted(resp.json(), key=lambda r: r["git_path"])
    assert results == [
        {"name": "bar", "git_path": "skills/bar", "description": None},
        {"name": "foo", "git_path": "skills/foo", "description": "Does foo"},
    ]


@pytest.mark.asyncio
async def test_scan_errors(client: AsyncClient, org, owner_headers):
    resp = await client.post(skills_url(org, "scan"), json={"git_url": "ftp://x/y"}, headers=owner_headers)
    assert resp.status_code == 400

    resp = await client.post(
        skills_url(org, "scan"), json={"git_url": "https://github.com/acme/missing.git"}, headers=owner_headers
    )
    assert resp.status_code == 502
    assert "not found" in resp.json()["detail"]

    resp = await client.post(skills_url(org, "scan"), json={}, headers=owner_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_import_skips_duplicates(client: AsyncClient, org, owner_headers):
    payload = {
        "git_url": SKILLS_REPO,
        "skills": [
            {"name": "foo", "git_path": "skills/foo", "description": "Does foo"},
            {"name": "foo", "git_path": "skills/foo"},
            {"name": "bar", "git_path": "skills/bar"},
        ],
    }
    resp = await client.post(skills_url(org, "import"), json=payload, headers=owner_headers)
    assert resp.status_code == 201
    assert sorted(s["path"] for s in resp.json()) == ["bar", "foo"]
    assert all(s["type"] == "optional" for s in resp.json())

    resp = await client.post(skills_url(org, "import"), json=payload, headers=owner_headers)
    assert resp.status_code == 201
    assert resp.json() == []

    resp = await client.get(skills_url(org), headers=owner_headers)
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_update_skill(client: AsyncClient, org, owner_headers):
    payload = {"name": "Foo", "git_url": SKILLS_REPO, "git_path": "skills/foo"}
    skill = (await client.post(skills_url(org), json=payload, headers=owner_headers)).json()

    resp = await client.patch(
        skills_url(org, skill["id"]),
        json={"type": "restricted", "enabled": False, "git_path": "tools/foo2"},
        headers=owner_headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["type"] == "restricted"
    assert data["enabled"] is False
    assert data["path"] == "foo2"

    resp = await client.patch(skills_url(org, "missing"), json={"enabled": True}, headers=owner_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_skill_removes_toggles(
    client: AsyncClient, org, owner_headers, member_headers, session_factory
):
    payload = {"name": "Foo", "git_url": SKILLS_REPO, "git_path": "skills/foo"}
    skill = (await client.post(skills_url(org), json=payload, headers=owner_headers)).json()

    resp = await client.post(
        f"/api/orgs/{org.id}/me/skills/{skill['id']}", json={"enabled": True}, headers=member_headers
    )
    assert resp.status_code == 200

    resp = await client.delete(skills_url(org, skill["id"]), headers=owner_headers)
    assert resp.status_code == 204

    async with session_factory() as session:
        rows = (await session.execute(select(UserSkill))).scalars().all()
    assert rows == []

    resp = await client.delete(skills_url(org, skill["id"]), headers=owner_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_skills_are_scoped_to_org(client: AsyncClient, org, owner_headers):
    payload = {"name": "Foo", "git_url": SKILLS_REPO, "git_path": "skills/foo"}
    skill = (await client.post(skills_url(org), json=payload, headers=owner_headers)).json()

    other = (await client.post("/api/orgs/", json={"name": "Other"}, headers=owner_headers)).json()
    resp = await client.get(f"/api/orgs/{other['id']}/admin/skills/", headers=owner_headers)
    assert resp.json() == []

    resp = await client.delete(f"/api/orgs/{other['id']}/admin/skills/{skill['id']}", headers=owner_headers)
    assert resp.status_code == 404
