"""Shared test fixtures for ml-toolkit tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ml_toolkit import Instance, NominalFeature, NumericFeature, Signature

BOOL = ("0", "1")


@pytest.fixture
def boolean_signature() -> Signature:
    """Two boolean nominal inputs and a boolean nominal class (last)."""
    return Signature([
        NominalFeature("a", BOOL),
        NominalFeature("b", BOOL),
        NominalFeature("out", BOOL),
    ])


@pytest.fixture
def and_instances(boolean_signature: Signature) -> list[Instance]:
    """Truth table of logical AND."""
    return [
        boolean_signature.make_instance([a, b, str(int(a == "1" and b == "1"))], training=True)
        for a in BOOL for b in BOOL
    ]


@pytest.fixture
def or_instances(boolean_signature: Signature) -> list[Instance]:
    """Truth table of logical OR."""
    return [
        boolean_signature.make_instance([a, b, str(int(a == "1" or b == "1"))], training=True)
        for a in BOOL for b in BOOL
    ]


@pytest.fixture
def weather_signature() -> Signature:
    """Mixed nominal/numeric signature of the classic play-tennis data."""
    return Signature([
        NominalFeature("outlook", ("sunny", "overcast", "rainy")),
        NumericFeature("temperature"),
        NumericFeature("humidity"),
        NominalFeature("windy", ("false", "true")),
        NominalFeature("play", ("yes", "no")),
    ])


WEATHER_ROWS = [
    ["sunny", 85, 85, "false", "no"],
    ["sunny", 80, 90, "true", "no"],
    ["overcast", 83, 86, "false", "yes"],
    ["rainy", 70, 96, "false", "yes"],
    ["rainy", 68, 80, "false", "yes"],
    ["rainy", 65, 70, "true", "no"],
    ["overcast", 64, 65, "true", "yes"],
    ["sunny", 72, 95, "false", "no"],
    ["sunny", 69, 70, "false", "yes"],
    ["rainy", 75, 80, "false", "yes"],
    ["sunny", 75, 70, "true", "yes"],
    ["overcast", 72, 90, "true", "yes"],
    ["overcast", 81, 75, "false", "yes"],
    ["rainy", 71, 91, "true", "no"],
]


@pytest.fixture
def weather_instances(weather_signature: Signature) -> list[Instance]:
    return [weather_signature.make_instance(row, training=True) for row in WEATHER_ROWS]


@pytest.fixture
def gps_signature() -> Signature:
    """Latitude/longitude pair with a nominal place label."""
    return Signature([
        NumericFeature("lat"),
        NumericFeature("lon"),
        NominalFeature("place", ("home", "work")),
    ])


@pytest.fixture
def gps_instances(gps_signature: Signature) -> list[Instance]:
    """Two tight clusters around (0, 0) and (10, 10)."""
    offsets = [(0.0, 0.0), (0.001, 0.0), (0.0, 0.001), (-0.001, 0.0), (0.0, -0.001)]
    rows = [[dx, dy, "home"] for dx, dy in offsets]
    rows += [[10.0 + dx, 10.0 + dy, "work"] for dx, dy in offsets]
    return [gps_signature.make_instance(row, training=True) for row in rows]


@pytest.fixture
def weather_dataset_path(tmp_path: Path, weather_signature: Signature) -> Path:
    """Weather data written as a JSON dataset file."""
    path = tmp_path / "weather.json"
    path.write_text(
        json.dumps({"signature": weather_signature.to_dict(), "instances": WEATHER_ROWS}),
        encoding="utf-8",
    )
    return path
