"""Data model shared by all classifiers: values, features, signatures, instances."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterable, Iterator, Optional, Sequence

from .exceptions import IncompatibleInstanceError, InvalidParameterError

logger = logging.getLogger(__name__)

# Every missing value shares this payload object, so two missing values
# compare equal even though NaN != NaN.
MISSING_PAYLOAD = math.nan


class Kind(str, Enum):
    """Kind of a feature or of a value (only values can be missing)."""

    NOMINAL = "nominal"
    NUMERIC = "numeric"
    MISSING = "missing"


# ---------------------------------------------------------------------------
# Value
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Value:
    """A tagged scalar: a category, a real number, or a missing marker.

    A missing value ignores whatever payload it was given and carries NaN.

    Raises:
        InvalidParameterError: If the payload does not match the kind.
    """

    payload: Any
    kind: Kind

    def __post_init__(self) -> None:
        try:
            kind = Kind(self.kind)
        except ValueError:
            raise InvalidParameterError(f"Unknown value kind: {self.kind!r}") from None
        object.__setattr__(self, "kind", kind)
        if kind is Kind.MISSING:
            object.__setattr__(self, "payload", MISSING_PAYLOAD)
        elif kind is Kind.NOMINAL:
            if not isinstance(self.payload, str):
                raise InvalidParameterError(
                    f"Nominal value must be a string, got {self.payload!r}"
                )
        else:
            if isinstance(self.payload, bool) or not isinstance(self.payload, (int, float)):
                raise InvalidParameterError(
                    f"Numeric value must be a number, got {self.payload!r}"
                )
            object.__setattr__(self, "payload", float(self.payload))

    @classmethod
    def nominal(cls, category: str) -> "Value":
        return cls(category, Kind.NOMINAL)

    @classmethod
    def numeric(cls, number: float) -> "Value":
        return cls(number, Kind.NUMERIC)

    @classmethod
    def missing(cls) -> "Value":
        return cls(None, Kind.MISSING)

    @classmethod
    def infer(cls, raw: Any) -> "Value":
        """Build a value from a plain Python object (``None`` is missing)."""
        if isinstance(raw, Value):
            return raw
        if raw is None:
            return cls.missing()
        if isinstance(raw, str):
            return cls.nominal(raw)
        return cls.numeric(raw)

    @property
    def is_missing(self) -> bool:
        return self.kind is Kind.MISSING

    def raw(self) -> Any:
        """Plain Python payload, ``None`` for a missing value."""
        return None if self.is_missing else self.payload

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "value": self.raw()}

    @classmethod
    def from_dict(cls, data: dict) -> "Value":
        return cls(data.get("value"), Kind(data["kind"]))

    def __str__(self) -> str:
        return "?" if self.is_missing else str(self.payload)


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Feature:
    """A named column of a :class:`Signature`."""

    name: str
    kind: ClassVar[Kind]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidParameterError(f"Feature name must be a non-empty string, got {self.name!r}")

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.kind.value}

    @staticmethod
    def from_dict(data: dict) -> "Feature":
        """Rebuild a nominal or numeric feature from its dict form."""
        kind = data.get("type")
        if kind == Kind.NOMINAL.value:
            return NominalFeature(data["name"], data.get("categories", ()))
        if kind == Kind.NUMERIC.value:
            return NumericFeature(data["name"])
        raise InvalidParameterError(f"Unsupported feature type: {kind!r}")


@dataclass(frozen=True)
class NumericFeature(Feature):
    """Real-valued feature."""

    kind: ClassVar[Kind] = Kind.NUMERIC


@dataclass(frozen=True)
class NominalFeature(Feature):
    """Categorical feature with a fixed, ordered set of unique categories."""

    categories: tuple[str, ...] = ()
    kind: ClassVar[Kind] = Kind.NOMINAL
    _index: dict[str, int] = field(init=False, repr=False, compare=False, default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        categories = tuple(self.categories)
        for category in categories:
            if not isinstance(category, str):
                raise InvalidParameterError(
                    f"Categories of {self.name!r} must be strings, got {category!r}"
                )
        if len(set(categories)) != len(categories):
            raise InvalidParameterError(f"Categories of {self.name!r} must be unique")
        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "_index", {c: i for i, c in enumerate(categories)})

    def index_of(self, category: str) -> int:
        """Position of ``category`` in the category list.

        Raises:
            IncompatibleInstanceError: If the category is not declared.
        """
        try:
            return self._index[category]
        except (KeyError, TypeError):
            raise IncompatibleInstanceError(
                f"{category!r} is not a category of feature {self.name!r}"
            ) from None

    def category_of(self, index: int) -> str:
        return self.categories[index]

    @property
    def num_categories(self) -> int:
        return len(self.categories)

    def __contains__(self, category: object) -> bool:
        return category in self._index

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["categories"] = list(self.categories)
        return data


# ---------------------------------------------------------------------------
# Instance
# ---------------------------------------------------------------------------

@dataclass
class Instance:
    """One data point: an ordered list of values.

    The meaning of each position is given by a :class:`Signature`: a
    labelled (training) instance has one value per feature, an unlabelled
    one omits the class value.
    """

    values: list[Value] = field(default_factory=list)

    @classmethod
    def of(cls, *raw: Any) -> "Instance":
        """Build an instance from plain values, inferring each kind.

        Example::

            Instance.of("sunny", 27.5, None)   # nominal, numeric, missing
        """
        return cls([Value.infer(r) for r in raw])

    def value_at(self, index: int) -> Value:
        return self.values[index]

    def add_value(self, value: Value) -> None:
        self.values.append(value)

    def set_value_at(self, index: int, value: Value) -> None:
        self.values[index] = value

    def raw(self) -> list[Any]:
        return [v.raw() for v in self.values]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values)

    def __str__(self) -> str:
        return "(" + ", ".join(str(v) for v in self.values) + ")"


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------

class Signature:
    """Ordered feature schema plus the index of the class feature.

    Args:
        features: The features, in instance order.
        class_index: Position of the class feature. Defaults to the last one.

    Raises:
        InvalidParameterError: If the feature list is empty, names repeat,
            or ``class_index`` is out of range.
    """

    def __init__(self, features: Sequence[Feature], class_index: Optional[int] = None) -> None:
        features = tuple(features)
        if not features:
            raise InvalidParameterError("A signature needs at least one feature")
        for feature in features:
            if not isinstance(feature, Feature):
                raise InvalidParameterError(f"Not a feature: {feature!r}")
        names = [f.name for f in features]
        if len(set(names)) != len(names):
            raise InvalidParameterError(f"Feature names must be unique, got {names}")
        if class_index is None:
            class_index = len(features) - 1
        if isinstance(class_index, bool) or not isinstance(class_index, int):
            raise InvalidParameterError(f"class_index must be an integer, got {class_index!r}")
        if not 0 <= class_index < len(features):
            raise InvalidParameterError(
                f"class_index {class_index} out of range for {len(features)} features"
            )
        self._features = features
        self._class_index = class_index
        self._attribute_indices = tuple(i for i in range(len(features)) if i != class_index)

    @property
    def features(self) -> tuple[Feature, ...]:
        return self._features

    @property
    def class_index(self) -> int:
        return self._class_index

    @property
    def class_feature(self) -> Feature:
        return self._features[self._class_index]

    @property
    def attribute_indices(self) -> tuple[int, ...]:
        """Signature positions of every non-class feature, in order."""
        return self._attribute_indices

    @property
    def attribute_features(self) -> tuple[Feature, ...]:
        return tuple(self._features[i] for i in self._attribute_indices)

    def feature_at(self, index: int) -> Feature:
        return self._features[index]

    def attribute_position(self, feature_index: int) -> int:
        """Position of a signature feature inside an unlabelled instance."""
        return self._attribute_indices.index(feature_index)

    def __len__(self) -> int:
        return len(self._features)

    def _layout(self, training: bool) -> tuple[Feature, ...]:
        return self._features if training else self.attribute_features

    def check_compliance(self, instance: Instance, training: bool) -> bool:
        """Whether ``instance`` fits this signature.

        A training instance must carry one value per feature; an instance to
        be classified omits the class value. Every present value must have
        the kind of its feature unless it is missing.
        """
        layout = self._layout(training)
        if len(instance) != len(layout):
            logger.debug(
                "Expected %d values (training=%s), got %d", len(layout), training, len(instance)
            )
            return False
        for position, (feature, value) in enumerate(zip(layout, instance)):
            if value.kind is not Kind.MISSING and value.kind is not feature.kind:
                logger.debug(
                    "Value %d is %s but feature %r is %s",
                    position, value.kind.value, feature.name, feature.kind.value,
                )
                return False
        return True

    def require_compliance(self, instance: Instance, training: bool) -> None:
        """Like :meth:`check_compliance` but raises on failure.

        Raises:
            IncompatibleInstanceError: If the instance does not comply.
        """
        if not self.check_compliance(instance, training):
            raise IncompatibleInstanceError(
                "Instance is not compatible with the dataset used for classifier construction."
            )

    def split(self, instance: Instance) -> tuple[list[Value], Value]:
        """Separate a training instance into attribute values and class value."""
        values = instance.values
        return [values[i] for i in self._attribute_indices], values[self._class_index]

    def make_instance(self, raw: Iterable[Any], training: bool = False) -> Instance:
        """Build a typed instance from plain values laid out like this signature.

        ``None`` (or the string ``"?"``) becomes a missing value, numeric
        features accept anything ``float()`` accepts.

        Raises:
            IncompatibleInstanceError: If the number of values is wrong or a
                value cannot be converted.
        """
        raw = list(raw)
        layout = self._layout(training)
        if len(raw) != len(layout):
            raise IncompatibleInstanceError(
                f"Expected {len(layout)} values, got {len(raw)}"
            )
        values: list[Value] = []
        for feature, item in zip(layout, raw):
            if item is None or item == "?":
                values.append(Value.missing())
            elif feature.kind is Kind.NUMERIC:
                try:
                    values.append(Value.numeric(float(item)))
                except (TypeError, ValueError):
                    raise IncompatibleInstanceError(
                        f"Feature {feature.name!r} expects a number, got {item!r}"
                    ) from None
            else:
                values.append(Value.nominal(str(item)))
        return Instance(values)

    def to_dict(self) -> dict:
        return {
            "features": [f.to_dict() for f in self._features],
            "class_index": self._class_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Signature":
        features = [Feature.from_dict(f) for f in data["features"]]
        return cls(features, data.get("class_index"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Signature):
            return NotImplemented
        return self._features == other._features and self._class_index == other._class_index

    def __hash__(self) -> int:
        return hash((self._features, self._class_index))

    def __repr__(self) -> str:
        return f"Signature(features={list(self._features)!r}, class_index={self._class_index})"

    def __str__(self) -> str:
        return ", ".join(f"[{f.name}({f.kind.value})]" for f in self._features)
