"""Named collection of classifiers with JSON storage.

A registry is a plain object owned by the caller; several can coexist.

Example::

    registry = ClassifierRegistry.open("classifiers.json")
    clf = registry.add_classifier(ClassifierType.NAIVE_BAYES, signature, None, "activity")
    clf.train(instances)
    registry.save("classifiers.json")
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterator, Optional

from .classifier import Classifier
from .config import STORAGE_FORMAT_VERSION, ClassifierConfig
from .exceptions import PersistenceError
from .models import Signature
from .persistence import (
    classifier_from_dict,
    classifier_to_dict,
    create_classifier,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)


class ClassifierRegistry:
    """Thread-safe mapping from names to classifiers."""

    def __init__(self) -> None:
        self._classifiers: dict[str, Classifier] = {}
        self._lock = threading.RLock()

    def add_classifier(
        self,
        classifier_type: Any,
        signature: Signature,
        config: Optional[ClassifierConfig],
        name: str,
    ) -> Classifier:
        """Return the classifier called ``name``, creating it if needed.

        An existing classifier is returned as-is, even if it was built with
        a different type, signature or configuration.
        """
        with self._lock:
            existing = self._classifiers.get(name)
            if existing is not None:
                logger.debug("Return existing classifier %r", name)
                return existing
            classifier = create_classifier(classifier_type, signature, config)
            self._classifiers[name] = classifier
            logger.debug("Added %s as %r", type(classifier).__name__, name)
            return classifier

    def put(self, name: str, classifier: Classifier) -> None:
        """Store ``classifier`` under ``name``, replacing any previous one."""
        with self._lock:
            self._classifiers[name] = classifier

    def get_classifier(self, name: str) -> Optional[Classifier]:
        with self._lock:
            return self._classifiers.get(name)

    def remove_classifier(self, name: str) -> None:
        with self._lock:
            self._classifiers.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._classifiers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._classifiers

    def __len__(self) -> int:
        with self._lock:
            return len(self._classifiers)

    def __iter__(self) -> Iterator[tuple[str, Classifier]]:
        with self._lock:
            return iter(list(self._classifiers.items()))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "version": STORAGE_FORMAT_VERSION,
                "classifiers": {
                    name: classifier_to_dict(clf) for name, clf in self._classifiers.items()
                },
            }

    @classmethod
    def from_dict(cls, data: dict) -> "ClassifierRegistry":
        if not isinstance(data, dict) or not isinstance(data.get("classifiers"), dict):
            raise PersistenceError("Classifier store has no 'classifiers' section")
        registry = cls()
        for name, entry in data["classifiers"].items():
            registry._classifiers[name] = classifier_from_dict(entry)
        return registry

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def save(self, path: str | Path) -> None:
        """Write every classifier to a JSON store."""
        write_json(path, self.to_dict())
        logger.info("Saved %d classifiers to %s", len(self), path)

    @classmethod
    def load(cls, path: str | Path) -> "ClassifierRegistry":
        """Read a JSON store written by :meth:`save`.

        Raises:
            ModelNotFoundError: If the file does not exist.
            PersistenceError: If it cannot be read or parsed.
        """
        registry = cls.from_dict(read_json(path))
        logger.info("Loaded %d classifiers from %s", len(registry), path)
        for _, classifier in registry:
            logger.debug("%s", classifier.describe())
        return registry

    @classmethod
    def open(cls, path: str | Path) -> "ClassifierRegistry":
        """Load the store at ``path`` if it exists, else start empty."""
        if Path(path).is_file():
            return cls.load(path)
        return cls()


def save_registry(registry: ClassifierRegistry, path: str | Path) -> None:
    registry.save(path)


def load_registry(path: str | Path) -> ClassifierRegistry:
    return ClassifierRegistry.load(path)
