"""
Tests for subscription toggles and the subscription read models.
"""

import uuid
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import headers_for, make_user
from vidtube.models import Subscription, User

SUBSCRIPTIONS_URL = "/api/v1/subscriptions"


def _subscribe(db: Session, subscriber: User, channel: User, created_at=None) -> Subscription:
    subscription = Subscription(
        subscriber_id=subscriber.id,
        channel_id=channel.id,
        created_at=created_at or datetime.utcnow()
    )
    db.add(subscription)
    db.commit()
    return subscription


class TestSubscriptionToggle:

    def test_toggle_twice(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User, auth_headers
    ):
        """Test subscribing then unsubscribing leaves no record."""
        url = f"{SUBSCRIPTIONS_URL}/user/{test_user2.id}"

        first = client.post(url, headers=auth_headers)
        assert first.status_code == 200
        assert first.json()["data"] == {"isSubscribed": True}
        assert test_db.query(Subscription).filter_by(
            subscriber_id=test_user.id, channel_id=test_user2.id
        ).count() == 1

        second = client.post(url, headers=auth_headers)
        assert second.json()["data"] == {"isSubscribed": False}
        assert test_db.query(Subscription).count() == 0

    def test_cannot_subscribe_to_self(self, client: TestClient, test_db: Session, test_user: User, auth_headers):
        response = client.post(f"{SUBSCRIPTIONS_URL}/user/{test_user.id}", headers=auth_headers)

        assert response.status_code == 400
        assert test_db.query(Subscription).count() == 0

    def test_unknown_channel(self, client: TestClient, auth_headers):
        response = client.post(f"{SUBSCRIPTIONS_URL}/user/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_malformed_channel_id(self, client: TestClient, auth_headers):
        response = client.post(f"{SUBSCRIPTIONS_URL}/user/abc", headers=auth_headers)

        assert response.status_code == 400


@pytest.mark.readmodel
class TestSubscriptionViews:

    def test_channel_subscribers(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User, auth_headers
    ):
        """Test subscribers newest first with the viewer's isSubscribed flag for each."""
        carol = make_user(test_db, "carol")
        start = datetime(2024, 6, 1)
        _subscribe(test_db, test_user2, test_user, created_at=start)
        _subscribe(test_db, carol, test_user, created_at=start + timedelta(days=1))
        # alice follows bob back, so bob's entry is flagged for her
        _subscribe(test_db, test_user, test_user2)

        response = client.get(f"{SUBSCRIPTIONS_URL}/user/{test_user.id}", headers=auth_headers)

        assert response.status_code == 200
        entries = response.json()["data"]
        assert [entry["subscriber"]["username"] for entry in entries] == ["carol", "bob"]
        carol_entry, bob_entry = entries
        assert carol_entry["subscriber"]["isSubscribed"] is False
        assert carol_entry["subscriber"]["subscriberCount"] == 0
        assert bob_entry["subscriber"]["isSubscribed"] is True
        assert bob_entry["subscriber"]["subscriberCount"] == 1
        assert bob_entry["subscribedAt"].startswith("2024-06-01")

    def test_channel_without_subscribers(self, client: TestClient, test_user: User, auth_headers):
        response = client.get(f"{SUBSCRIPTIONS_URL}/user/{test_user.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_subscribers_of_unknown_channel(self, client: TestClient, auth_headers):
        response = client.get(f"{SUBSCRIPTIONS_URL}/user/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_subscribed_channels(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User, auth_headers
    ):
        carol = make_user(test_db, "carol")
        start = datetime(2024, 6, 1)
        _subscribe(test_db, test_user, test_user2, created_at=start)
        _subscribe(test_db, test_user, carol, created_at=start + timedelta(days=1))
        _subscribe(test_db, carol, test_user2)

        response = client.get(f"{SUBSCRIPTIONS_URL}/channel/{test_user.id}", headers=auth_headers)

        assert response.status_code == 200
        channels = response.json()["data"]
        assert [entry["channel"]["username"] for entry in channels] == ["carol", "bob"]
        assert channels[0]["channel"]["subscribedChannelCount"] == 1
        assert channels[1]["channel"]["subscribedChannelCount"] == 2

    def test_subscribed_channels_unknown_user(self, client: TestClient, auth_headers):
        response = client.get(f"{SUBSCRIPTIONS_URL}/channel/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_is_subscribed_matches_records(self, client: TestClient, test_db: Session, test_user: User):
        """Test the profile flag follows every toggle."""
        carol = make_user(test_db, "carol")
        headers = headers_for(carol)
        toggle_url = f"{SUBSCRIPTIONS_URL}/user/{test_user.id}"
        profile_url = "/api/v1/users/c/alice"

        for expected in (True, False, True):
            client.post(toggle_url, headers=headers)
            profile = client.get(profile_url, headers=headers).json()["data"]
            exists = test_db.query(Subscription).filter_by(
                subscriber_id=carol.id, channel_id=test_user.id
            ).count() == 1
            assert profile["isSubscribed"] is expected
            assert exists is expected
            assert profile["subscriberCount"] == (1 if expected else 0)
