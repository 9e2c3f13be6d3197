"""ZeroR: ignores every attribute and predicts the majority class or the mean."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from .classifier import OnlineClassifier
from .config import ClassifierConfig, ClassifierType
from .exceptions import (
    IncompatibleFeatureTypeError,
    InvalidParameterError,
    InvalidStateError,
)
from .models import Instance, Kind, NominalFeature, Signature, Value

logger = logging.getLogger(__name__)


class ZeroR(OnlineClassifier):
    """Majority-class (nominal class) or mean (numeric class) baseline.

    For a nominal class the state is one count per category; for a numeric
    class it is a running ``[sum, count]`` pair, which makes ZeroR usable
    as a regression baseline as well.
    """

    classifier_type = ClassifierType.ZERO_R

    def __init__(self, signature: Signature, config: Optional[ClassifierConfig] = None) -> None:
        super().__init__(signature, config)
        self._lock = threading.RLock()
        class_feature = signature.class_feature
        if isinstance(class_feature, NominalFeature):
            self._counts = [0.0] * class_feature.num_categories
        else:
            self._counts = [0.0, 0.0]

    @property
    def _nominal(self) -> bool:
        return isinstance(self._signature.class_feature, NominalFeature)

    def update(self, instance: Instance) -> None:
        """Count the class value of one labelled instance.

        Raises:
            IncompatibleInstanceError: If the instance does not comply.
            IncompatibleFeatureTypeError: If the class value is missing.
        """
        with self._lock:
            self._signature.require_compliance(instance, training=True)
            class_value = instance.value_at(self._signature.class_index)
            if class_value.kind is Kind.MISSING:
                raise IncompatibleFeatureTypeError("Class value must not be missing.")
            if self._nominal:
                index = self._signature.class_feature.index_of(class_value.payload)
                self._counts[index] += 1
            else:
                self._counts[0] += class_value.payload
                self._counts[1] += 1
            self._trained = True

    def train(self, instances: Iterable[Instance]) -> None:
        for instance in instances:
            with self._lock:
                self.update(instance)

    def classify(self, instance: Instance) -> Value:
        """Return the most frequent category, or the mean of the numeric class.

        Ties go to the lowest category index; an untrained nominal ZeroR
        returns the first category.

        Raises:
            IncompatibleInstanceError: If the instance does not comply.
            InvalidStateError: If a numeric class has no observations yet.
        """
        with self._lock:
            self._signature.require_compliance(instance, training=False)
            class_feature = self._signature.class_feature
            if self._nominal:
                max_count = 0.0
                max_index = 0
                for index, count in enumerate(self._counts):
                    if count > max_count:
                        max_index = index
                        max_count = count
                return Value.nominal(class_feature.category_of(max_index))
            total, count = self._counts
            if count == 0:
                raise InvalidStateError(
                    "Cannot compute the mean of a numeric class without observations."
                )
            return Value.numeric(total / count)

    def describe(self) -> str:
        with self._lock:
            lines = [
                f"Classifier type: {int(self.classifier_type)} (ZeroR)",
                f"Signature: {self._signature}",
            ]
            if self._nominal:
                categories = self._signature.class_feature.categories
                lines.append("Class value counts: " + "".join(
                    f"[{c}:{n:g}]" for c, n in zip(categories, self._counts)
                ))
            else:
                total, count = self._counts
                lines.append(f"Class value sum: {total:g}, count: {count:g}")
            return "\n".join(lines)

    def _state_to_dict(self) -> dict:
        with self._lock:
            return {"counts": list(self._counts)}

    def _load_state(self, state: dict) -> None:
        counts = state.get("counts")
        if counts is not None:
            if len(counts) != len(self._counts):
                raise InvalidParameterError(
                    f"ZeroR state has {len(counts)} counts, expected {len(self._counts)}"
                )
            self._counts = [float(c) for c in counts]
