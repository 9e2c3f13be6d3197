"""Online Naive Bayes over mixed nominal and numeric attributes.

Nominal attributes are modelled with per-class category counts (optionally
Laplace-smoothed), numeric attributes with a per-class Gaussian estimated
from running count, sum and sum of squares. Training is incremental: every
call to :meth:`NaiveBayes.update` folds one more instance into the counts.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Iterable, Optional

from .classifier import OnlineClassifier
from .config import (
    DEFAULT_LAPLACE_SMOOTHING,
    LAPLACE_SMOOTHING,
    ClassifierConfig,
    ClassifierType,
)
from .exceptions import InvalidParameterError
from .models import Instance, Kind, NominalFeature, Signature, Value

logger = logging.getLogger(__name__)

# Indices into a numeric statistics cell.
_COUNT, _SUM, _SUM_SQUARES = 0, 1, 2

# Relative variance below which sum-of-squares cancellation is all that is left.
_DEGENERATE_VARIANCE = 1e-12


def gaussian_density(value: float, count: float, total: float, sum_squares: float) -> float:
    """Normal density at ``value`` from running statistics.

    An infinite density is capped to 1.0. A cell whose variance vanishes
    (up to the rounding left by the running sums) is degenerate: the
    density is 1.0 at the mean and 0.0 anywhere else.
    """
    mean = total / count
    variance = max(sum_squares / count - mean * mean, 0.0)
    if variance <= _DEGENERATE_VARIANCE * max(1.0, mean * mean):
        return 1.0 if math.isclose(value, mean, rel_tol=1e-9, abs_tol=1e-12) else 0.0
    density = math.exp(-((value - mean) ** 2) / (2.0 * variance)) / math.sqrt(2.0 * math.pi * variance)
    if math.isinf(density):
        return 1.0
    return density


class NaiveBayes(OnlineClassifier):
    """Naive Bayesian classifier for a nominal class.

    Config:
        laplaceSmoothing (bool): Add-one smoothing of nominal conditional
            probabilities. Defaults to True.

    Raises:
        IncompatibleFeatureTypeError: If the class feature is not nominal.
        InvalidParameterError: If ``laplaceSmoothing`` is not a bool.
    """

    classifier_type = ClassifierType.NAIVE_BAYES

    def __init__(self, signature: Signature, config: Optional[ClassifierConfig] = None) -> None:
        super().__init__(signature, config)
        self._class_feature = self._require_nominal_class()
        self.laplace_smoothing = self._config.bool_param(
            LAPLACE_SMOOTHING, DEFAULT_LAPLACE_SMOOTHING
        )
        self._lock = threading.RLock()
        self._initialize()

    def _initialize(self) -> None:
        categories = self._class_feature.categories
        self._class_counts = [0.0] * len(categories)
        # feature name -> class category -> counts (nominal) or [count, sum, sum_sq] (numeric)
        self._value_counts: dict[str, dict[str, list[float]]] = {}
        for feature in self._signature.attribute_features:
            size = feature.num_categories if isinstance(feature, NominalFeature) else 3
            self._value_counts[feature.name] = {c: [0.0] * size for c in categories}

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def update(self, instance: Instance) -> None:
        """Fold one labelled instance into the statistics.

        Missing attribute values leave their cell untouched.

        Raises:
            IncompatibleInstanceError: If the instance does not comply.
            IncompatibleFeatureTypeError: If the class value is not nominal.
        """
        with self._lock:
            self._signature.require_compliance(instance, training=True)
            attributes, class_value = self._signature.split(instance)
            category = self._class_category(class_value)
            class_index = self._class_feature.index_of(category)

            # Resolve every index before mutating anything.
            changes: list[tuple[list[float], Value, int]] = []
            for feature, value in zip(self._signature.attribute_features, attributes):
                cell = self._value_counts[feature.name][category]
                if value.kind is Kind.NOMINAL:
                    changes.append((cell, value, feature.index_of(value.payload)))
                elif value.kind is Kind.NUMERIC:
                    changes.append((cell, value, -1))

            self._class_counts[class_index] += 1
            for cell, value, index in changes:
                if index >= 0:
                    cell[index] += 1
                else:
                    cell[_COUNT] += 1
                    cell[_SUM] += value.payload
                    cell[_SUM_SQUARES] += value.payload ** 2
            self._trained = True
            logger.debug("Update with class %r: %d attribute cells changed", category, len(changes))

    def train(self, instances: Iterable[Instance]) -> None:
        count = 0
        for instance in instances:
            with self._lock:
                self.update(instance)
            count += 1
        logger.info("NaiveBayes trained on %d instances", count)

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def distribution(self, instance: Instance) -> list[float]:
        """Unnormalized class posteriors, aligned with the class categories.

        Raises:
            IncompatibleInstanceError: If the instance does not comply.
        """
        with self._lock:
            self._signature.require_compliance(instance, training=False)
            categories = self._class_feature.categories
            total = sum(self._class_counts)
            if total == 0:
                posteriors = [1.0 / len(categories)] * len(categories)
            else:
                posteriors = [count / total for count in self._class_counts]
            logger.debug("Class priors: %s", posteriors)

            for feature, value in zip(self._signature.attribute_features, instance):
                if value.kind is Kind.MISSING:
                    continue
                cells = self._value_counts[feature.name]
                value_index = feature.index_of(value.payload) if value.kind is Kind.NOMINAL else -1
                for class_index, category in enumerate(categories):
                    cell = cells[category]
                    if value.kind is Kind.NOMINAL:
                        posteriors[class_index] *= self._nominal_probability(
                            cell, value_index, feature.num_categories
                        )
                    elif cell[_COUNT] > 0:
                        posteriors[class_index] *= gaussian_density(
                            value.payload, cell[_COUNT], cell[_SUM], cell[_SUM_SQUARES]
                        )
            logger.debug("Class posteriors: %s", posteriors)
            return posteriors

    def _nominal_probability(self, cell: list[float], index: int, num_categories: int) -> float:
        cell_total = sum(cell)
        if self.laplace_smoothing:
            return (cell[index] + 1) / (cell_total + num_categories)
        if cell_total > 0:
            return cell[index] / cell_total
        return 0.0

    def probabilities(self, instance: Instance) -> dict[str, float]:
        """Posteriors normalized to sum to one, keyed by class category."""
        posteriors = self.distribution(instance)
        categories = self._class_feature.categories
        norm = sum(posteriors)
        if norm <= 0 or not math.isfinite(norm):
            return {c: 1.0 / len(categories) for c in categories}
        return {c: p / norm for c, p in zip(categories, posteriors)}

    def classify(self, instance: Instance) -> Value:
        """Return the class category with the highest posterior.

        Ties and a distribution without evidence resolve to the first category.
        """
        with self._lock:
            posteriors = self.distribution(instance)
            best = 0.0
            best_index = -1
            for index, posterior in enumerate(posteriors):
                if posterior > best:
                    best = posterior
                    best_index = index
            if best_index == -1:
                best_index = 0
            return Value.nominal(self._class_feature.category_of(best_index))

    # ------------------------------------------------------------------
    # Introspection & serialization
    # ------------------------------------------------------------------

    def describe(self) -> str:
        with self._lock:
            categories = self._class_feature.categories
            lines = [
                f"Classifier type: {int(self.classifier_type)} (NaiveBayes)",
                f"Signature: {self._signature}",
                f"Laplace smoothing: {self.laplace_smoothing}",
                "Class feature value counts: " + "".join(
                    f"[{c}:{n:g}]" for c, n in zip(categories, self._class_counts)
                ),
                "Other feature value counts:",
            ]
            for name, cells in self._value_counts.items():
                row = ", ".join(
                    f"[{c}:" + ",".join(f"{v:g}" for v in cells[c]) + "]" for c in categories
                )
                lines.append(f"  {name} {row}")
            return "\n".join(lines)

    def _state_to_dict(self) -> dict:
        with self._lock:
            return {
                "class_counts": list(self._class_counts),
                "value_counts": {
                    name: {c: list(cell) for c, cell in cells.items()}
                    for name, cells in self._value_counts.items()
                },
            }

    def _load_state(self, state: dict) -> None:
        if "class_counts" in state:
            class_counts = [float(c) for c in state["class_counts"]]
            if len(class_counts) != len(self._class_counts):
                raise InvalidParameterError("NaiveBayes class counts do not match the signature")
            self._class_counts = class_counts
        for name, cells in state.get("value_counts", {}).items():
            if name not in self._value_counts:
                raise InvalidParameterError(f"NaiveBayes state names unknown feature {name!r}")
            for category, cell in cells.items():
                expected = self._value_counts[name].get(category)
                if expected is None or len(expected) != len(cell):
                    raise InvalidParameterError(
                        f"NaiveBayes cell {name}[{category}] does not match the signature"
                    )
                self._value_counts[name][category] = [float(v) for v in cell]
