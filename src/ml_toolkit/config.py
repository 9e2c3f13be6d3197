"""Classifier discriminators, configuration parameters and defaults."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from .exceptions import InvalidParameterError

CLASSIFIER_STORAGE_FILE = "classifiers.json"
STORAGE_FORMAT_VERSION = "1.0"

# Density clustering
MAX_CLUSTER_DISTANCE = "maxClusterDistance"
MIN_INCLUSION_PERCENT = "minInclusionPercent"
DEFAULT_MAX_CLUSTER_DISTANCE = 1.0
DEFAULT_MIN_INCLUSION_PERCENT = 50.0

# Naive Bayes
LAPLACE_SMOOTHING = "laplaceSmoothing"
DEFAULT_LAPLACE_SMOOTHING = True


class ClassifierType(IntEnum):
    """Discriminator identifying a classifier variant in serialized form."""

    ZERO_R = 1000
    NAIVE_BAYES = 1001
    BAYES_NET = 1002  # reserved, no implementation
    ID3 = 1003
    DENSITY_CLUSTERING = 1004

    @property
    def slug(self) -> str:
        """Command-line friendly name, e.g. ``naive-bayes``."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def decode(cls, value: Any) -> "ClassifierType":
        """Resolve a discriminator integer (or slug) to a classifier type.

        Raises:
            InvalidParameterError: If the value names no known variant.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.slug == value.strip().lower():
                    return member
            raise InvalidParameterError(f"Unknown classifier type: {value!r}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidParameterError(f"Classifier type must be an integer, got {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameterError(f"Unknown classifier type: {value}") from None


@dataclass
class ClassifierConfig:
    """Named configuration parameters handed to a classifier on construction.

    Parameters that a variant does not recognise are kept (so they survive
    persistence) but ignored.

    Example::

        config = ClassifierConfig()
        config.add_param(MAX_CLUSTER_DISTANCE, 250.0)
        clf = DensityClustering(signature, config)
    """

    params: dict[str, Any] = field(default_factory=dict)

    def add_param(self, name: str, value: Any) -> None:
        self.params[name] = value

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def contains_param(self, name: str) -> bool:
        return name in self.params

    def all_params(self) -> set[str]:
        return set(self.params)

    def float_param(self, name: str, default: float, minimum: Optional[float] = None,
                    maximum: Optional[float] = None) -> float:
        """Resolve a numeric parameter, validating its type and range.

        Raises:
            InvalidParameterError: If the value is not a finite number or is
                out of ``[minimum, maximum]``.
        """
        if name not in self.params:
            return default
        value = self.params[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidParameterError(f"{name} must be a number, got {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise InvalidParameterError(f"{name} must be finite, got {value}")
        if minimum is not None and value < minimum:
            raise InvalidParameterError(f"{name} must be >= {minimum}, got {value}")
        if maximum is not None and value > maximum:
            raise InvalidParameterError(f"{name} must be <= {maximum}, got {value}")
        return value

    def bool_param(self, name: str, default: bool) -> bool:
        """Resolve a boolean parameter.

        Raises:
            InvalidParameterError: If the value is not a bool.
        """
        if name not in self.params:
            return default
        value = self.params[name]
        if not isinstance(value, bool):
            raise InvalidParameterError(f"{name} must be a boolean, got {value!r}")
        return value

    def to_dict(self) -> dict:
        return dict(self.params)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ClassifierConfig":
        return cls(params=dict(data or {}))
