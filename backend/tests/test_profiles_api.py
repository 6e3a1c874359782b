import uuid

import pytest
from httpx import AsyncClient

from app.models.charity import Charity
from app.models.organization import Organization
from app.models.user import User
from app.models.volunteer import Volunteer


def _error_code(response) -> str:
    return response.json()["detail"]["error"]["code"]


async def _register(client: AsyncClient, headers: dict, role: str, full_name: str):
    return await client.post(
        "/api/v1/me/register",
        headers=headers,
        json={"role": role, "full_name": full_name, "phone": "0612 345 678"},
    )


# === الحساب ===

@pytest.mark.asyncio
async def test_register_and_get_me(client: AsyncClient, auth_headers):
    principal = uuid.uuid4()
    headers = auth_headers(principal)

    response = await _register(client, headers, "donor", "مطعم السلام")
    assert response.status_code == 201
    data = response.json()
    assert data["id"] == str(principal)
    assert data["role"] == "donor"
    assert data["phone"] == "0612345678"

    me = await client.get("/api/v1/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["organization_id"] is None


@pytest.mark.asyncio
async def test_register_twice_is_duplicate(client: AsyncClient, auth_headers):
    headers = auth_headers(uuid.uuid4())
    await _register(client, headers, "volunteer", "يوسف")

    response = await _register(client, headers, "charity", "يوسف")
    assert response.status_code == 409
    assert _error_code(response) == "DUPLICATE"


@pytest.mark.asyncio
async def test_cannot_register_as_admin(client: AsyncClient, auth_headers):
    response = await _register(client, auth_headers(uuid.uuid4()), "admin", "مدير")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unregistered_principal_is_unauthorized(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/me", headers=auth_headers(uuid.uuid4()))
    assert response.status_code == 401
    assert _error_code(response) == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_invalid_token_is_unauthorized(client: AsyncClient):
    response = await client.get("/api/v1/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


# === الجهات المتبرعة والجمعيات ===

@pytest.mark.asyncio
async def test_donor_creates_organization_and_admin_verifies(client: AsyncClient, auth_headers, admin_user: User):
    headers = auth_headers(uuid.uuid4())
    admin = auth_headers(admin_user.id)
    await _register(client, headers, "donor", "فندق الأطلس")

    response = await client.post(
        "/api/v1/organizations",
        headers=headers,
        json={
            "name": "فندق الأطلس",
            "type": "hotel",
            "address": "شارع الحسن الثاني، الرباط",
            "latitude": 34.01,
            "longitude": -6.83,
            "contact_person": "رشيد",
            "contact_phone": "+212600000010",
        },
    )
    assert response.status_code == 201
    org = response.json()
    assert org["verified"] is False

    me = await client.get("/api/v1/me", headers=headers)
    assert me.json()["organization_id"] == org["id"]

    self_verify = await client.patch(
        f"/api/v1/organizations/{org['id']}/verify", headers=headers, json={"verified": True}
    )
    assert self_verify.status_code == 403

    verified = await client.patch(
        f"/api/v1/organizations/{org['id']}/verify",
        headers=admin,
        json={"verified": True},
    )
    assert verified.status_code == 200
    assert verified.json()["verified"] is True

    listing = await client.get("/api/v1/organizations?verified=true", headers=headers)
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_second_organization_profile_is_duplicate(client: AsyncClient, auth_headers, organization: Organization):
    response = await client.post(
        "/api/v1/organizations",
        headers=auth_headers(organization.user_id),
        json={
            "name": "فرع ثان",
            "type": "restaurant",
            "address": "حي الرياض، الرباط",
            "contact_person": "سعيد",
            "contact_phone": "+212600000011",
        },
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_role_must_match_profile(client: AsyncClient, auth_headers, organization: Organization):
    response = await client.post(
        "/api/v1/charities",
        headers=auth_headers(organization.user_id),
        json={
            "name": "جمعية وهمية",
            "registration_number": "X-1",
            "address": "الرباط",
            "contact_person": "سعيد",
            "contact_phone": "+212600000012",
        },
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_half_location_is_rejected(client: AsyncClient, auth_headers):
    headers = auth_headers(uuid.uuid4())
    await _register(client, headers, "charity", "جمعية البر")

    response = await client.post(
        "/api/v1/charities",
        headers=headers,
        json={
            "name": "جمعية البر",
            "registration_number": "RB-77",
            "address": "سلا الجديدة",
            "latitude": 34.0,
            "contact_person": "نادية",
            "contact_phone": "+212600000013",
        },
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_owner_updates_charity_but_cannot_self_verify(
    client: AsyncClient, auth_headers, charity: Charity, organization: Organization
):
    owner = auth_headers(charity.user_id)

    response = await client.patch(
        f"/api/v1/charities/{charity.id}",
        headers=owner,
        json={"contact_person": "خديجة العلوي", "verified": False},
    )
    assert response.status_code == 200
    assert response.json()["contact_person"] == "خديجة العلوي"
    assert response.json()["verified"] is True

    other = await client.patch(
        f"/api/v1/charities/{charity.id}",
        headers=auth_headers(organization.user_id),
        json={"contact_person": "شخص آخر"},
    )
    assert other.status_code == 403


# === المتطوعون ===

@pytest.mark.asyncio
async def test_volunteer_profile_and_location(client: AsyncClient, auth_headers):
    headers = auth_headers(uuid.uuid4())
    await _register(client, headers, "volunteer", "أمين")

    created = await client.post(
        "/api/v1/volunteers",
        headers=headers,
        json={"latitude": 34.02, "longitude": -6.84},
    )
    assert created.status_code == 201
    volunteer = created.json()
    assert volunteer["available"] is True
    assert volunteer["rating"] == 5.0
    assert volunteer["total_pickups"] == 0

    cleared = await client.put(
        f"/api/v1/volunteers/{volunteer['id']}/location",
        headers=headers,
        json={"latitude": None, "longitude": None},
    )
    assert cleared.status_code == 200
    assert cleared.json()["latitude"] is None


@pytest.mark.asyncio
async def test_volunteer_cannot_move_someone_else(
    client: AsyncClient, auth_headers, volunteer_near: Volunteer, volunteer_far: Volunteer
):
    response = await client.put(
        f"/api/v1/volunteers/{volunteer_near.id}/location",
        headers=auth_headers(volunteer_far.user_id),
        json={"latitude": 35.0, "longitude": -5.0},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
