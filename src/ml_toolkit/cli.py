"""Command-line interface for ml-toolkit.

Provides ``train``, ``classify``, ``info`` and ``evaluate`` commands with
rich terminal output using the ``click`` and ``rich`` libraries.

Usage::

    ml-toolkit train data/weather.json --type naive-bayes --name weather
    ml-toolkit classify classifiers.json weather sunny 72 90 false
    ml-toolkit info classifiers.json
    ml-toolkit evaluate data/weather.json --type id3 --folds 3
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import CLASSIFIER_STORAGE_FILE, ClassifierConfig, ClassifierType
from .evaluation import ClassificationMetrics, cross_validate, training_metrics
from .exceptions import MLError
from .models import NominalFeature
from .persistence import load_dataset
from .registry import ClassifierRegistry

console = Console()
logger = logging.getLogger(__name__)

TYPE_CHOICES = [t.slug for t in ClassifierType if t is not ClassifierType.BAYES_NET]


def _parse_option_value(raw: str):
    """Interpret ``true``/``false`` and numbers, keep anything else as text."""
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return float(raw)
    except ValueError:
        return raw


def _build_config(options: tuple[str, ...]) -> ClassifierConfig:
    config = ClassifierConfig()
    for option in options:
        if "=" not in option:
            raise click.BadParameter(f"expected key=value, got {option!r}", param_hint="--option")
        key, raw = option.split("=", 1)
        config.add_param(key.strip(), _parse_option_value(raw))
    return config


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(error))}")
    sys.exit(1)


@click.group()
@click.version_option(package_name="ml-toolkit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Train and run small on-device classifiers.

    Supported algorithms: ZeroR, Naive Bayes, ID3 and density clustering.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "-t", "clf_type", type=click.Choice(TYPE_CHOICES), required=True,
              help="Classifier algorithm.")
@click.option("--name", "-n", required=True, help="Name to store the classifier under.")
@click.option("--option", "-O", "options", multiple=True,
              help="Configuration parameter as key=value (repeatable).")
@click.option("--store", "-s", type=click.Path(dir_okay=False, path_type=Path),
              default=CLASSIFIER_STORAGE_FILE, show_default=True,
              help="Classifier store to update.")
def train(dataset: Path, clf_type: str, name: str, options: tuple[str, ...], store: Path) -> None:
    """Train a classifier on a JSON dataset and save it to the store.

    Example: ml-toolkit train data/weather.json --type id3 --name weather

    A classifier already stored under ``name`` is retrained as it is; a
    warning is logged if it differs from the requested type or options.
    """
    config = _build_config(options)
    with console.status("[bold blue]Training classifier...", spinner="dots"):
        try:
            signature, instances = load_dataset(dataset)
            registry = ClassifierRegistry.open(store)
            classifier = registry.add_classifier(clf_type, signature, config, name)
            requested = ClassifierType.decode(clf_type)
            if classifier.classifier_type is not requested or classifier.config != config:
                logger.warning(
                    "Classifier %r is already stored as %s with options %s; "
                    "ignoring --type %s and --option",
                    name, type(classifier).__name__, classifier.config.to_dict(), requested.slug,
                )
            classifier.train(instances)
            registry.save(store)
            metrics = (
                training_metrics(classifier, instances)
                if isinstance(signature.class_feature, NominalFeature) and instances
                else None
            )
        except MLError as e:
            _fail(e)

    console.print(
        f"Trained [bold]{type(classifier).__name__}[/] [cyan]{name}[/] on "
        f"{len(instances)} instances, saved to [dim]{store}[/]"
    )
    if metrics is not None:
        console.print(f"Training accuracy: [bold]{metrics.accuracy:.2%}[/]")
        _render_per_class(metrics, "Training set")


@main.command()
@click.argument("store", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.argument("values", nargs=-1, required=True)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def classify(store: Path, name: str, values: tuple[str, ...], output: str) -> None:
    """Classify one unlabelled instance; use ? for a missing value.

    Example: ml-toolkit classify classifiers.json weather sunny 72 90 false
    """
    try:
        registry = ClassifierRegistry.load(store)
        classifier = registry.get_classifier(name)
        if classifier is None:
            _fail(click.ClickException(f"No classifier named {name!r} in {store}"))
        instance = classifier.signature.make_instance(values, training=False)
        result = classifier.classify(instance)
    except MLError as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps({"name": name, "instance": instance.raw(), "class": result.raw()}))
    else:
        console.print(f"[cyan]{classifier.signature.class_feature.name}[/] = [bold]{result}[/]")


@main.command()
@click.argument("store", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name", required=False)
def info(store: Path, name: str | None) -> None:
    """Show the learned state of one or all stored classifiers."""
    try:
        registry = ClassifierRegistry.load(store)
    except MLError as e:
        _fail(e)

    names = [name] if name else registry.names()
    if not names:
        console.print("[dim]No classifiers stored.[/]")
        return
    for clf_name in names:
        classifier = registry.get_classifier(clf_name)
        if classifier is None:
            _fail(click.ClickException(f"No classifier named {clf_name!r} in {store}"))
        status = "trained" if classifier.is_trained else "untrained"
        console.print(Panel(
            classifier.describe(),
            title=f"{clf_name} ({type(classifier).__name__}, {status})",
            border_style="blue",
        ))


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "-t", "clf_type", type=click.Choice(TYPE_CHOICES), required=True,
              help="Classifier algorithm.")
@click.option("--folds", "-k", type=click.IntRange(min=2), default=5, show_default=True,
              help="Number of cross-validation folds.")
@click.option("--seed", type=int, default=42, show_default=True, help="Fold shuffling seed.")
@click.option("--option", "-O", "options", multiple=True,
              help="Configuration parameter as key=value (repeatable).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def evaluate(dataset: Path, clf_type: str, folds: int, seed: int,
             options: tuple[str, ...], output: str) -> None:
    """Cross-validate a classifier algorithm on a JSON dataset.

    Example: ml-toolkit evaluate data/weather.json --type naive-bayes --folds 3
    """
    config = _build_config(options)
    with console.status("[bold blue]Cross-validating...", spinner="dots"):
        try:
            signature, instances = load_dataset(dataset)
            results = cross_validate(clf_type, signature, instances, k=folds,
                                     config=config, seed=seed)
        except MLError as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps([m.to_dict() for m in results], indent=2))
    else:
        _render_folds(results)
        _render_per_class(ClassificationMetrics.pooled(results), "All folds")


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_folds(results: list[ClassificationMetrics]) -> None:
    """Render per-fold metrics and their mean as a rich table."""
    table = Table(title="Cross-validation", show_lines=False)
    table.add_column("Fold", justify="right", width=6)
    table.add_column("Accuracy", justify="right")
    table.add_column("Macro F1", justify="right")
    table.add_column("Weighted F1", justify="right")

    for i, metrics in enumerate(results, 1):
        table.add_row(
            str(i),
            f"{metrics.accuracy:.2%}",
            f"{metrics.macro_f1:.4f}",
            f"{metrics.weighted_f1:.4f}",
        )

    n = len(results) or 1
    table.add_row(
        "[bold]mean[/]",
        f"[bold]{sum(m.accuracy for m in results) / n:.2%}[/]",
        f"{sum(m.macro_f1 for m in results) / n:.4f}",
        f"{sum(m.weighted_f1 for m in results) / n:.4f}",
    )
    console.print(table)


def _render_per_class(metrics: ClassificationMetrics, title: str) -> None:
    """Render precision, recall, F1 and support of every class category."""
    table = Table(title=f"Per-class metrics ({title})")
    table.add_column("Class", style="cyan")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("Support", justify="right")

    support = metrics.support
    for category, scores in metrics.per_class.items():
        table.add_row(
            escape(category),
            f"{scores['precision']:.4f}",
            f"{scores['recall']:.4f}",
            f"{scores['f1']:.4f}",
            str(support[category]),
        )
    console.print(table)


if __name__ == "__main__":
    main()
