"""JSON persistence: classifier (de)serialization by discriminator, datasets.

Every serialized classifier carries its variant discriminator under
``"type"``; :func:`classifier_from_dict` decodes it against a closed table
of implemented variants.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .classifier import Classifier
from .config import ClassifierConfig, ClassifierType
from .density_clustering import DensityClustering
from .exceptions import (
    InvalidParameterError,
    MLError,
    ModelNotFoundError,
    PersistenceError,
)
from .id3 import ID3
from .models import Instance, Signature
from .naive_bayes import NaiveBayes
from .zero_r import ZeroR

logger = logging.getLogger(__name__)

CLASSIFIER_CLASSES: dict[ClassifierType, type[Classifier]] = {
    ClassifierType.ZERO_R: ZeroR,
    ClassifierType.NAIVE_BAYES: NaiveBayes,
    ClassifierType.ID3: ID3,
    ClassifierType.DENSITY_CLUSTERING: DensityClustering,
}


def classifier_class(classifier_type: Any) -> type[Classifier]:
    """Implementation class for a discriminator (integer, enum member or slug).

    Raises:
        InvalidParameterError: For unknown or reserved discriminators.
    """
    decoded = ClassifierType.decode(classifier_type)
    try:
        return CLASSIFIER_CLASSES[decoded]
    except KeyError:
        raise InvalidParameterError(f"Classifier type {decoded.name} is not implemented") from None


def create_classifier(
    classifier_type: Any,
    signature: Signature,
    config: Optional[ClassifierConfig] = None,
) -> Classifier:
    """Instantiate an untrained classifier of the given variant."""
    cls = classifier_class(classifier_type)
    logger.debug("Create %s", cls.__name__)
    return cls(signature, config)


def classifier_to_dict(classifier: Classifier) -> dict:
    return classifier.to_dict()


def classifier_from_dict(data: dict) -> Classifier:
    """Rebuild a classifier of the variant named by ``data["type"]``.

    Raises:
        InvalidParameterError: If the discriminator is missing or unknown,
            or the stored state does not fit the stored signature.
    """
    if not isinstance(data, dict) or "type" not in data:
        raise InvalidParameterError("Serialized classifier has no 'type' discriminator")
    cls = classifier_class(data["type"])
    try:
        return cls.from_dict(data)
    except MLError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidParameterError(f"Malformed {cls.__name__} data: {e}") from e


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def write_json(path: str | Path, data: Any) -> None:
    """Write ``data`` as indented UTF-8 JSON, creating parent directories.

    Raises:
        PersistenceError: On any I/O failure.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise PersistenceError(f"IO exception while writing {path}: {e}") from e


def read_json(path: str | Path) -> Any:
    """Read a JSON document.

    Raises:
        ModelNotFoundError: If the file does not exist.
        PersistenceError: If it cannot be read or parsed.
    """
    path = Path(path)
    if not path.is_file():
        raise ModelNotFoundError(f"File {path} not found.")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise PersistenceError(f"IO exception while reading {path}: {e}") from e


def save_classifier(classifier: Classifier, path: str | Path) -> None:
    write_json(path, classifier_to_dict(classifier))


def load_classifier(path: str | Path) -> Classifier:
    return classifier_from_dict(read_json(path))


# ---------------------------------------------------------------------------
# Datasets
# ---------------------------------------------------------------------------

def dataset_to_dict(signature: Signature, instances: list[Instance]) -> dict:
    return {
        "signature": signature.to_dict(),
        "instances": [instance.raw() for instance in instances],
    }


def save_dataset(signature: Signature, instances: list[Instance], path: str | Path) -> None:
    write_json(path, dataset_to_dict(signature, instances))


def load_dataset(path: str | Path) -> tuple[Signature, list[Instance]]:
    """Load a labelled dataset file.

    The file holds ``{"signature": {...}, "instances": [[...], ...]}`` where
    each instance is a list of plain values in signature order and ``null``
    marks a missing value.

    Raises:
        PersistenceError: If the file is missing, unreadable or malformed.
        IncompatibleInstanceError: If a row does not fit the signature.
    """
    data = read_json(path)
    if not isinstance(data, dict) or "signature" not in data:
        raise PersistenceError(f"{path} has no 'signature' section")
    try:
        signature = Signature.from_dict(data["signature"])
    except (KeyError, TypeError) as e:
        raise PersistenceError(f"Malformed signature in {path}: {e}") from e
    instances = [signature.make_instance(row, training=True) for row in data.get("instances", [])]
    logger.info("Loaded %d instances from %s", len(instances), path)
    return signature, instances
