"""Centroid classifier over density-filtered, labelled clusters.

Training first discards outliers with a density test: a point is dropped
when fewer than ``minInclusionPercent`` percent of the other points sharing
its label lie within ``maxClusterDistance`` of it. The centroid of each
label is then the mean of its surviving points. Classification returns the
label of the nearest centroid.

Distances are Euclidean, except for two-dimensional vectors, which are
taken to be ``(latitude, longitude)`` in degrees and compared with the
haversine great-circle distance in meters.

LIMITATION: a label with no surviving points keeps an all-zero centroid.

Training is a batch operation that replaces the centroids; callers that
share one instance across threads must serialize ``train`` themselves.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from .classifier import Classifier
from .config import (
    DEFAULT_MAX_CLUSTER_DISTANCE,
    DEFAULT_MIN_INCLUSION_PERCENT,
    MAX_CLUSTER_DISTANCE,
    MIN_INCLUSION_PERCENT,
    ClassifierConfig,
    ClassifierType,
)
from .exceptions import (
    IncompatibleFeatureTypeError,
    IncompatibleInstanceError,
    InvalidParameterError,
)
from .models import Instance, Kind, Signature, Value

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_distance(coords_a: Sequence[float], coords_b: Sequence[float]) -> float:
    """Great-circle distance in meters between two ``(lat, lon)`` pairs in degrees."""
    lat1, lon1 = coords_a
    lat2, lon2 = coords_b
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2.0) * math.sin(d_lat / 2.0)
        + math.sin(d_lon / 2.0) * math.sin(d_lon / 2.0)
        * math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
    )
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000.0


def euclidean_distance(coords_a: Sequence[float], coords_b: Sequence[float]) -> float:
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(coords_a, coords_b)))


def distance(coords_a: Sequence[float], coords_b: Sequence[float]) -> float:
    """Haversine distance for 2-vectors, Euclidean distance otherwise.

    Raises:
        IncompatibleInstanceError: If the vectors differ in length.
    """
    if len(coords_a) != len(coords_b):
        raise IncompatibleInstanceError(
            f"Cannot compare coordinate vectors of length {len(coords_a)} and {len(coords_b)}"
        )
    if len(coords_a) == 2:
        return haversine_distance(coords_a, coords_b)
    return euclidean_distance(coords_a, coords_b)


class DensityClustering(Classifier):
    """Nearest-centroid classifier with density-based outlier removal.

    Config:
        maxClusterDistance (float): Radius of the density test. Defaults to
            1.0 (meters when coordinates are GPS pairs).
        minInclusionPercent (float): Share of same-label points, in percent,
            that must lie within the radius. Defaults to 50.0.

    Raises:
        IncompatibleFeatureTypeError: If the class feature is not nominal or
            an attribute feature is not numeric.
        InvalidParameterError: If a configuration value is invalid.
    """

    classifier_type = ClassifierType.DENSITY_CLUSTERING

    def __init__(self, signature: Signature, config: Optional[ClassifierConfig] = None) -> None:
        super().__init__(signature, config)
        self._class_feature = self._require_nominal_class()
        for feature in signature.attribute_features:
            if feature.kind is not Kind.NUMERIC:
                raise IncompatibleFeatureTypeError(
                    f"DensityClustering requires numeric attributes, {feature.name!r} is "
                    f"{feature.kind.value}"
                )
        self.max_distance = self._config.float_param(
            MAX_CLUSTER_DISTANCE, DEFAULT_MAX_CLUSTER_DISTANCE, minimum=0.0
        )
        self.min_inclusion_pct = self._config.float_param(
            MIN_INCLUSION_PERCENT, DEFAULT_MIN_INCLUSION_PERCENT, minimum=0.0, maximum=100.0
        )
        self._dimensions = len(signature) - 1
        self._reset()

    def _reset(self) -> None:
        categories = self._class_feature.categories
        self._centroids: dict[str, list[float]] = {c: [0.0] * self._dimensions for c in categories}
        self._num_trains: dict[str, int] = {c: 0 for c in categories}

    @property
    def centroids(self) -> dict[str, list[float]]:
        """Copy of the centroid of every class category."""
        return {c: list(coords) for c, coords in self._centroids.items()}

    @property
    def cluster_sizes(self) -> dict[str, int]:
        return dict(self._num_trains)

    def _coordinates(self, values: Iterable[Value]) -> list[float]:
        """Coordinate vector of the attribute values.

        Raises:
            IncompatibleInstanceError: If any coordinate is missing.
        """
        coords = []
        for feature, value in zip(self._signature.attribute_features, values):
            if value.kind is Kind.MISSING:
                raise IncompatibleInstanceError(
                    f"DensityClustering needs every coordinate, {feature.name!r} is missing"
                )
            coords.append(value.payload)
        return coords

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, instances: Iterable[Instance]) -> None:
        """Remove outliers from the batch, then recompute every centroid.

        Each instance is tested once, in batch order, against the instances
        that are still present at that moment; an outlier is dropped before
        the next instance is tested. The caller's batch is left untouched.

        Raises:
            IncompatibleInstanceError: If an instance does not comply, has a
                missing coordinate or an undeclared label.
            IncompatibleFeatureTypeError: If a class value is not nominal.
        """
        points: list[tuple[str, list[float]]] = []
        for instance in instances:
            self._signature.require_compliance(instance, training=True)
            attributes, class_value = self._signature.split(instance)
            label = self._class_category(class_value)
            if label not in self._class_feature:
                raise IncompatibleInstanceError(f"{label!r} is not a class category")
            points.append((label, self._coordinates(attributes)))
        logger.debug("Train with %d instances", len(points))

        present = [True] * len(points)
        for i, (label, coords) in enumerate(points):
            total = 0
            inside = 0
            for j, (other_label, other_coords) in enumerate(points):
                if j == i or not present[j] or other_label != label:
                    continue
                total += 1
                if distance(coords, other_coords) < self.max_distance:
                    inside += 1
            logger.debug("Points: %d/%d vs %s/100", inside, total, self.min_inclusion_pct)
            if total > 0 and inside / total < self.min_inclusion_pct / 100.0:
                logger.debug("Remove outlier %s with label %r", coords, label)
                present[i] = False
        survivors = [point for point, keep in zip(points, present) if keep]
        logger.debug("Outliers removed. %d instances left.", len(survivors))

        self._reset()
        for label, coords in survivors:
            centroid = self._centroids[label]
            for i, coord in enumerate(coords):
                centroid[i] += coord
            self._num_trains[label] += 1
        for label, centroid in self._centroids.items():
            count = self._num_trains[label]
            if count > 0:
                self._centroids[label] = [c / count for c in centroid]
            logger.debug("Centroid with label %r contains %d points.", label, count)

        self._trained = True
        logger.info(
            "DensityClustering trained on %d instances, %d kept after outlier removal",
            len(points), len(survivors),
        )

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def classify(self, instance: Instance) -> Value:
        """Return the label of the closest centroid.

        Centroids are scanned in class-category order and the first one at
        the minimum distance wins, so an untrained classifier answers with
        the first category.

        Raises:
            IncompatibleInstanceError: If the instance does not comply or a
                coordinate is missing.
        """
        self._signature.require_compliance(instance, training=False)
        coords = self._coordinates(instance)
        best_label = self._class_feature.category_of(0)
        best_distance = math.inf
        for label in self._class_feature.categories:
            current = distance(coords, self._centroids[label])
            if current < best_distance:
                best_label, best_distance = label, current
        return Value.nominal(best_label)

    # ------------------------------------------------------------------
    # Introspection & serialization
    # ------------------------------------------------------------------

    def describe(self) -> str:
        lines = [
            f"Classifier type: {int(self.classifier_type)} (DensityClustering)",
            f"Signature: {self._signature}",
            f"Max cluster distance: {self.max_distance:g}, "
            f"min inclusion: {self.min_inclusion_pct:g}%",
            "Centroids:",
        ]
        for label, centroid in self._centroids.items():
            coords = ",".join(f"{c:g}" for c in centroid)
            lines.append(f"{label}({self._num_trains[label]})\t[{coords}]")
        return "\n".join(lines)

    def _state_to_dict(self) -> dict:
        return {
            "centroids": {c: list(coords) for c, coords in self._centroids.items()},
            "num_trains": dict(self._num_trains),
        }

    def _load_state(self, state: dict) -> None:
        for label, coords in state.get("centroids", {}).items():
            if label not in self._centroids or len(coords) != self._dimensions:
                raise InvalidParameterError(
                    f"Centroid for {label!r} does not match the signature"
                )
            self._centroids[label] = [float(c) for c in coords]
        for label, count in state.get("num_trains", {}).items():
            if label not in self._num_trains:
                raise InvalidParameterError(f"Unknown cluster label {label!r}")
            self._num_trains[label] = int(count)
