"""Integration tests for the check-in endpoints."""

import pytest
from libs.common.datetime_utils import local_date
from services.checkin_service.app.main import app
from services.checkin_service.repositories import encode_cursor
from tests.factories import (
    ActivityFactory,
    AthleteFactory,
    HostFactory,
    PetFactory,
    make_athlete_user,
    make_host_user,
    override_auth,
)


async def _host_with_athlete(repos, signed=True):
    bike = await ActivityFactory.create(repos, name="Bike")
    host, location = await HostFactory.create(repos, activities=[bike])
    athlete = await AthleteFactory.create(
        repos, sign_for=[host.id] if signed else ()
    )
    return host, location, bike, athlete


def _check_in_body(host, location, activity, athlete):
    return {
        "athleteId": athlete.id,
        "hostId": host.id,
        "locationId": location.id,
        "activityId": activity.id,
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_athlete_and_sign_disclaimer(client, repos):
    host, _ = await HostFactory.create(repos, disclaimer="Ride safe.")

    created = await client.post(
        "/athletes",
        json={"firstName": "Jane", "lastName": "Smith", "email": "jane@trailhead.org"},
    )
    athlete_id = created.json()["id"]
    before = await client.get(f"/athletes/{athlete_id}/disclaimer/{host.id}")
    signed = await client.post(
        f"/athletes/{athlete_id}/disclaimer", json={"hostId": host.id}
    )
    after = await client.get(f"/athletes/{athlete_id}/disclaimer/{host.id}")

    assert created.status_code == 201
    assert created.json()["globalCount"] == 0
    assert before.json()["signed"] is False
    assert before.json()["disclaimer"] == "Ride safe."
    assert host.id in signed.json()["disclaimers"]
    assert after.json()["signed"] is True
    assert after.json()["signedAt"] is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_athlete_rejects_bad_email(client):
    response = await client.post(
        "/athletes",
        json={"firstName": "Jane", "lastName": "Smith", "email": "not-an-email"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_search_athletes(client, repos):
    jane = await AthleteFactory.create(repos, first_name="Jane", last_name="Smith")

    by_name = await client.get(
        "/athletes/search", params={"lastName": "smith", "firstName": "j"}
    )
    missing = await client.get("/athletes/search")

    assert [a["id"] for a in by_name.json()] == [jane.id]
    assert missing.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_weekly_check_in_flow(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    body = _check_in_body(host, location, bike, athlete)

    first = await client.post("/checkins", json=body)
    second = await client.post("/checkins", json=body)
    status = await client.get(
        f"/athletes/{athlete.id}/checkins/status", params={"hostId": host.id}
    )
    profile = await client.get(f"/athletes/{athlete.id}")

    assert first.status_code == 201
    assert first.json()["activityId"] == bike.id
    assert second.status_code == 400
    assert second.json()["code"] == "already_checked_in"
    assert status.json()["status"] == "checked_in_this_week"
    assert status.json()["activityId"] == bike.id
    assert profile.json()["globalCount"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_requires_disclaimer(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos, signed=False)

    response = await client.post(
        "/checkins", json=_check_in_body(host, location, bike, athlete)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "disclaimer_required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_undo_check_in_restores_count(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    created = await client.post(
        "/checkins", json=_check_in_body(host, location, bike, athlete)
    )
    timestamp = created.json()["timestamp"]

    deleted = await client.delete(f"/athletes/{athlete.id}/checkins/{timestamp}")
    status = await client.get(
        f"/athletes/{athlete.id}/checkins/status", params={"hostId": host.id}
    )
    profile = await client.get(f"/athletes/{athlete.id}")
    again = await client.delete(f"/athletes/{athlete.id}/checkins/{timestamp}")

    assert deleted.status_code == 204
    assert status.json()["status"] == "eligible"
    assert profile.json()["globalCount"] == 0
    assert again.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_host_user_checks_in_only_at_own_host(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    body = _check_in_body(host, location, bike, athlete)

    with override_auth(app, make_host_user()):
        foreign = await client.post("/checkins", json=body)
    with override_auth(app, make_athlete_user()):
        athlete_call = await client.post("/checkins", json=body)
    with override_auth(app, make_host_user(user_id=host.identity_ref)):
        own = await client.post("/checkins", json=body)

    assert foreign.status_code == 403
    assert athlete_call.status_code == 403
    assert own.status_code == 201


@pytest.mark.asyncio
@pytest.mark.integration
async def test_recent_host_feed_and_counts(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    await client.post("/checkins", json=_check_in_body(host, location, bike, athlete))

    feed = await client.get(f"/hosts/{host.id}/checkins/recent")
    total = await client.get(f"/athletes/{athlete.id}/checkins/count")
    at_host = await client.get(
        f"/athletes/{athlete.id}/checkins/count", params={"hostId": host.id}
    )

    assert [c["athleteId"] for c in feed.json()] == [athlete.id]
    assert total.json() == {"count": 1}
    assert at_host.json() == {"count": 1}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_pet_check_in_follows_owner(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    pet = await PetFactory.create(repos, athlete.id, name="Rex")
    pet_body = {
        "athleteId": athlete.id,
        "petId": pet.id,
        "hostId": host.id,
        "locationId": location.id,
    }

    early = await client.post("/pet-checkins", json=pet_body)
    await client.post("/checkins", json=_check_in_body(host, location, bike, athlete))
    accepted = await client.post("/pet-checkins", json=pet_body)
    count = await client.get(f"/pets/{pet.id}/checkins/count")
    profile = await client.get(f"/athletes/{athlete.id}")

    assert early.status_code == 400
    assert accepted.status_code == 201
    assert count.json() == {"count": 1}
    assert profile.json()["globalCount"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_pet_listing_rejects_bad_cursor(client):
    response = await client.get("/pets", params={"cursor": "%%%not-a-cursor"})

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_athlete_listing_rejects_non_string_cursor(client, repos):
    await AthleteFactory.create(repos)
    cursor = encode_cursor({"sort": {"x": 1}, "pk": 1, "sk": []})

    response = await client.get("/athletes", params={"cursor": cursor})

    assert response.status_code == 400
    assert response.json()["detail"] == "Malformed pagination cursor"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_ins_by_date(client, repos):
    host, location, bike, athlete = await _host_with_athlete(repos)
    created = await client.post(
        "/checkins", json=_check_in_body(host, location, bike, athlete)
    )
    today = local_date(created.json()["timestamp"]).isoformat()

    listed = await client.get("/checkins", params={"date": today})
    other_day = await client.get("/checkins", params={"date": "2001-01-01"})

    assert [c["athleteId"] for c in listed.json()] == [athlete.id]
    assert other_day.json() == []
