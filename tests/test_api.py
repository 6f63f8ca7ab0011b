"""Tests for the status API."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from api import app
from conftest import make_descriptor
from descriptors import LabeledDescriptors
from main import LoopState
from matcher import Matcher
from smoother import IdentitySmoother


@pytest.fixture
def client():
    app.state.loop = None
    yield TestClient(app)
    app.state.loop = None


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "/identities" in response.json()["endpoints"]


def test_identities_without_loop(client):
    assert client.get("/identities").status_code == 503


def test_identities(client):
    identities = IdentitySmoother()
    for age in (30, 32, 34):
        identities.update("Ana", age, "female", 0.9)
    app.state.loop = SimpleNamespace(
        state=LoopState.DETECTING,
        matcher=Matcher([LabeledDescriptors("Ana", [make_descriptor(1)])]),
        identities=identities,
    )

    body = client.get("/identities").json()

    assert body["state"] == "detecting"
    assert body["matcher_ready"] is True
    assert body["known_labels"] == 1
    assert body["identities"][0]["label"] == "Ana"
    assert body["identities"][0]["gender"] == "female"
    assert body["identities"][0]["age"] == 32
    assert body["identities"][0]["samples"] == 3


def test_identities_before_matcher(client):
    app.state.loop = SimpleNamespace(state=LoopState.INITIALIZING, matcher=None,
                                     identities=IdentitySmoother())

    body = client.get("/identities").json()
    assert body["matcher_ready"] is False
    assert body["identities"] == []
