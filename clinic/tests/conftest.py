import datetime

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import Player, User


@pytest.fixture(autouse=True)
def _isolated_media(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.OCR_SIMULATED_LATENCY_SECONDS = 0
    # throttle counters live in the cache
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(username, role, **extra):
        return User.objects.create_user(username=username, password="P@ssw0rd1", role=role, **extra)
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin1", "admin", full_name="Anna Admin")


@pytest.fixture
def trainer(make_user):
    return make_user("trainer1", "trainer", full_name="Tom Trainer")


@pytest.fixture
def physio(make_user):
    return make_user("physio1", "physiotherapist", full_name="Paula Physio")


@pytest.fixture
def physician(make_user):
    return make_user("arzt1", "physician", full_name="Dr. Schmidt")


@pytest.fixture
def player(db):
    return Player.objects.create(first_name="Max", last_name="Mustermann",
                                 date_of_birth=datetime.date(1995, 3, 15), jersey_number=7, position="Außen")


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user=user)
        return c
    return _client
