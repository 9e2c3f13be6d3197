"""ml-toolkit -- small supervised classifiers for on-device learning."""

__version__ = "0.1.0"

from .classifier import Classifier, OnlineClassifier
from .config import (
    CLASSIFIER_STORAGE_FILE,
    LAPLACE_SMOOTHING,
    MAX_CLUSTER_DISTANCE,
    MIN_INCLUSION_PERCENT,
    ClassifierConfig,
    ClassifierType,
)
from .density_clustering import DensityClustering, distance, euclidean_distance, haversine_distance
from .evaluation import (
    ClassificationMetrics,
    compute_metrics,
    cross_validate,
    stratified_k_fold,
    training_metrics,
)
from .exceptions import (
    ErrorCode,
    IncompatibleFeatureTypeError,
    IncompatibleInstanceError,
    InvalidParameterError,
    InvalidStateError,
    MLError,
    ModelNotFoundError,
    PersistenceError,
)
from .id3 import ID3, DecisionNode
from .models import Feature, Instance, Kind, NominalFeature, NumericFeature, Signature, Value
from .naive_bayes import NaiveBayes
from .persistence import (
    classifier_from_dict,
    classifier_to_dict,
    create_classifier,
    load_classifier,
    load_dataset,
    save_classifier,
    save_dataset,
)
from .registry import ClassifierRegistry, load_registry, save_registry
from .zero_r import ZeroR

__all__ = [
    # Data model
    "Kind",
    "Value",
    "Feature",
    "NominalFeature",
    "NumericFeature",
    "Signature",
    "Instance",
    # Classifiers
    "Classifier",
    "OnlineClassifier",
    "ZeroR",
    "NaiveBayes",
    "ID3",
    "DecisionNode",
    "DensityClustering",
    "distance",
    "euclidean_distance",
    "haversine_distance",
    # Configuration
    "ClassifierConfig",
    "ClassifierType",
    "CLASSIFIER_STORAGE_FILE",
    "LAPLACE_SMOOTHING",
    "MAX_CLUSTER_DISTANCE",
    "MIN_INCLUSION_PERCENT",
    # Registry & persistence
    "ClassifierRegistry",
    "create_classifier",
    "classifier_to_dict",
    "classifier_from_dict",
    "save_classifier",
    "load_classifier",
    "save_registry",
    "load_registry",
    "load_dataset",
    "save_dataset",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    "cross_validate",
    "stratified_k_fold",
    "training_metrics",
    # Errors
    "ErrorCode",
    "MLError",
    "IncompatibleFeatureTypeError",
    "IncompatibleInstanceError",
    "InvalidParameterError",
    "InvalidStateError",
    "PersistenceError",
    "ModelNotFoundError",
]
