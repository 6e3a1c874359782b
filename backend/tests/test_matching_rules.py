import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.core.constants import DONATION_TRANSITIONS, TERMINAL_STATUSES, DonationStatus
from app.services.charity_policy import (
    NearestCharityPolicy,
    RoundRobinCharityPolicy,
    get_charity_policy,
)
from app.services.geo import equirectangular_km, get_distance_metric, haversine_km
from app.services.matching_service import available_volunteers_query, rank_volunteers
from app.services.pickup_service import running_rating

ORG_LAT, ORG_LNG = 34.0209, -6.8416
KM = 1 / 111.195


def _located(lat, lng, **attrs):
    record = MagicMock()
    record.id = attrs.pop("id", uuid.uuid4())
    record.latitude = lat
    record.longitude = lng
    record.has_location = lat is not None and lng is not None
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def _volunteer(km, rating=5.0, available=True, **attrs):
    lat = ORG_LAT + km * KM if km is not None else None
    lng = ORG_LNG if km is not None else None
    return _located(lat, lng, rating=rating, available=available, **attrs)


@pytest.fixture
def org():
    return _located(ORG_LAT, ORG_LNG)


# === المسافات ===

def test_haversine_known_distance():
    # الرباط - الدار البيضاء حوالي 87 كم
    distance = haversine_km(34.0209, -6.8416, 33.5731, -7.5898)
    assert 80 < distance < 92


def test_equirectangular_close_to_haversine_at_city_scale():
    exact = haversine_km(ORG_LAT, ORG_LNG, ORG_LAT + 0.03, ORG_LNG + 0.03)
    approx = equirectangular_km(ORG_LAT, ORG_LNG, ORG_LAT + 0.03, ORG_LNG + 0.03)
    assert abs(exact - approx) < 0.01


def test_unknown_metric_rejected():
    with pytest.raises(ValueError):
        get_distance_metric("manhattan")


# === ترتيب المتطوعين ===

def test_nearest_volunteer_wins_over_rating(org):
    near = _volunteer(2, rating=4.8)
    far = _volunteer(5, rating=5.0)

    ranked = rank_volunteers(org, [far, near], haversine_km)

    assert [r.volunteer for r in ranked] == [near, far]
    assert ranked[0].distance_km == pytest.approx(2, abs=0.01)


def test_rating_breaks_distance_tie(org):
    low = _volunteer(3, rating=4.0)
    high = _volunteer(3, rating=4.9)

    ranked = rank_volunteers(org, [low, high], haversine_km)
    assert ranked[0].volunteer is high


def test_volunteer_id_breaks_full_tie(org):
    a = _volunteer(3, rating=4.5, id=uuid.UUID(int=1))
    b = _volunteer(3, rating=4.5, id=uuid.UUID(int=2))

    ranked = rank_volunteers(org, [b, a], haversine_km)
    assert ranked[0].volunteer is a


def test_unavailable_unlocated_and_distant_volunteers_excluded(org):
    busy = _volunteer(1, available=False)
    unlocated = _volunteer(None)
    distant = _volunteer(80)
    eligible = _volunteer(10)

    ranked = rank_volunteers(org, [busy, unlocated, distant, eligible], haversine_km, 50)
    assert [r.volunteer for r in ranked] == [eligible]


def test_no_radius_keeps_distant_volunteers(org):
    distant = _volunteer(80)
    assert len(rank_volunteers(org, [distant], haversine_km, None)) == 1


# === التقييم ===

def test_running_rating_seed_counts_once():
    assert running_rating(4.8, 0, 4) == 4.4


def test_running_rating_accumulates():
    # تقييمان سابقان + القيمة الأولية = 3 ملاحظات
    assert running_rating(4.0, 2, 5) == 4.25


# === آلة الحالات ===

def test_terminal_statuses_have_no_exit():
    for status in TERMINAL_STATUSES:
        assert DONATION_TRANSITIONS[status] == set()


def test_lifecycle_path_allowed():
    assert DonationStatus.ASSIGNED in DONATION_TRANSITIONS[DonationStatus.PENDING]
    assert DonationStatus.PICKED_UP in DONATION_TRANSITIONS[DonationStatus.ASSIGNED]
    assert DonationStatus.DELIVERED in DONATION_TRANSITIONS[DonationStatus.PICKED_UP]


def test_no_skipping_or_going_back_after_pickup():
    assert DonationStatus.DELIVERED not in DONATION_TRANSITIONS[DonationStatus.ASSIGNED]
    assert DonationStatus.PICKED_UP not in DONATION_TRANSITIONS[DonationStatus.PENDING]
    assert DonationStatus.CANCELLED not in DONATION_TRANSITIONS[DonationStatus.PICKED_UP]
    assert DonationStatus.PENDING not in DONATION_TRANSITIONS[DonationStatus.PICKED_UP]


# === سياسة اختيار الجمعية ===

@pytest.mark.asyncio
async def test_nearest_charity_policy(org):
    close = _located(ORG_LAT + 1 * KM, ORG_LNG)
    far = _located(ORG_LAT + 9 * KM, ORG_LNG)
    unlocated = _located(None, None)

    policy = NearestCharityPolicy(metric=haversine_km)
    assert await policy.select(None, org, [far, unlocated, close]) is close
    assert await policy.select(None, org, [unlocated]) is None


def test_policy_registry():
    assert isinstance(get_charity_policy("nearest"), NearestCharityPolicy)
    assert isinstance(get_charity_policy("round_robin"), RoundRobinCharityPolicy)
    with pytest.raises(ValueError):
        get_charity_policy("random")


def test_candidate_scan_does_not_lock_volunteers():
    sql = str(available_volunteers_query().compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" not in sql
    assert "SKIP LOCKED" not in sql
