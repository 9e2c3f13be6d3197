"""Abstract classifier interface shared by every learning algorithm."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Iterable, Optional

from .config import ClassifierConfig, ClassifierType
from .exceptions import IncompatibleFeatureTypeError, InvalidParameterError
from .models import Instance, Kind, NominalFeature, Signature, Value

logger = logging.getLogger(__name__)


class Classifier(ABC):
    """A learning algorithm bound to one signature and one configuration.

    Subclasses set :attr:`classifier_type`, implement :meth:`train`,
    :meth:`classify` and :meth:`describe`, and serialize their learned
    state through :meth:`_state_to_dict` / :meth:`_load_state`.

    Args:
        signature: Feature layout every instance must comply with.
        config: Optional configuration parameters.
    """

    classifier_type: ClassVar[ClassifierType]

    def __init__(self, signature: Signature, config: Optional[ClassifierConfig] = None) -> None:
        if not isinstance(signature, Signature):
            raise InvalidParameterError(f"Expected a Signature, got {signature!r}")
        self._signature = signature
        self._config = config if config is not None else ClassifierConfig()
        self._trained = False

    @property
    def signature(self) -> Signature:
        return self._signature

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    @property
    def is_trained(self) -> bool:
        """Whether at least one training call completed without error."""
        return self._trained

    @abstractmethod
    def train(self, instances: Iterable[Instance]) -> None:
        """Train the classifier with labelled instances."""

    @abstractmethod
    def classify(self, instance: Instance) -> Value:
        """Infer the class value of an unlabelled instance."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable dump of the learned state."""

    def print_classifier_info(self) -> str:
        """Log :meth:`describe` at INFO level and return it."""
        info = self.describe()
        logger.info("%s", info)
        return info

    def _require_nominal_class(self) -> NominalFeature:
        feature = self._signature.class_feature
        if not isinstance(feature, NominalFeature):
            raise IncompatibleFeatureTypeError(
                f"{type(self).__name__} requires a nominal class feature, "
                f"{feature.name!r} is {feature.kind.value}"
            )
        return feature

    def _class_category(self, class_value: Value) -> str:
        if class_value.kind is not Kind.NOMINAL:
            raise IncompatibleFeatureTypeError("Class variable has to be of type NOMINAL.")
        return class_value.payload

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize the classifier, tagged with its discriminator."""
        return {
            "type": int(self.classifier_type),
            "signature": self._signature.to_dict(),
            "config": self._config.to_dict(),
            "trained": self._trained,
            "state": self._state_to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Classifier":
        """Rebuild a classifier of this exact variant from :meth:`to_dict` output."""
        clf = cls(
            Signature.from_dict(data["signature"]),
            ClassifierConfig.from_dict(data.get("config")),
        )
        clf._load_state(data.get("state") or {})
        clf._trained = bool(data.get("trained", False))
        return clf

    @abstractmethod
    def _state_to_dict(self) -> dict:
        ...

    @abstractmethod
    def _load_state(self, state: dict) -> None:
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(signature={self._signature}, "
            f"trained={self._trained})"
        )


class OnlineClassifier(Classifier):
    """A classifier that can also learn one instance at a time."""

    @abstractmethod
    def update(self, instance: Instance) -> None:
        """Incorporate a single labelled instance."""
