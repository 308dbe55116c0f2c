import random

import pytest

from fakes import TAIPEI_BOX, FakeMapsRepository
from routemate.models.route import DirectionsLeg, DirectionsResult
from routemate.repositories.memory import InMemoryRouteStore
from routemate.services.geocoding import GeocodingService
from routemate.services.normalizer import AddressNormalizer
from routemate.services.optimization import RouteOptimizationService
from routemate.services.planner import RoutePlanner


@pytest.fixture
def store():
    return InMemoryRouteStore()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def simulated_planner(store, rng):
    return RoutePlanner(
        store=store,
        normalizer=AddressNormalizer(),
        geocoding_service=GeocodingService(None, TAIPEI_BOX, delay_seconds=0, rng=rng),
        optimization_service=RouteOptimizationService(None, rng=rng),
    )


@pytest.fixture
def fake_maps():
    return FakeMapsRepository(
        directions=DirectionsResult(
            legs=[
                DirectionsLeg(distance_meters=5200, duration_seconds=600),
                DirectionsLeg(distance_meters=7130, duration_seconds=930),
            ],
            waypoint_order=[0],
        )
    )


@pytest.fixture
def live_planner(store, rng, fake_maps):
    return RoutePlanner(
        store=store,
        normalizer=AddressNormalizer(),
        geocoding_service=GeocodingService(fake_maps, TAIPEI_BOX, delay_seconds=0, rng=rng),
        optimization_service=RouteOptimizationService(fake_maps, rng=rng),
    )
