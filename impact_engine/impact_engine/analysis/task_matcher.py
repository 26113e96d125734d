"""Match changed node definitions to pipeline tasks.

Matching is exact after case folding: a model named ``Orders`` matches a
task named ``orders`` but never ``orders_staging``.  Output order follows
the task listing, not the order in which models changed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from impact_engine.models.lineage import MatchedTask, PipelineTask

logger = logging.getLogger(__name__)


def filter_connector_tasks(tasks: Sequence[PipelineTask], connector_type: str) -> list[PipelineTask]:
    """Tasks whose ``connection_type`` equals or contains *connector_type*."""
    return [task for task in tasks if task.connector_matches(connector_type)]


def match_tasks(
    tasks: Sequence[PipelineTask],
    model_files: Mapping[str, str],
) -> list[MatchedTask]:
    """Pair each task with the changed file of the model it implements.

    Parameters
    ----------
    tasks:
        Candidate tasks, already filtered to the target connector.
    model_files:
        Changed model name -> originating file path.

    Tasks without a matching model, or whose model has no file path, are
    dropped.
    """
    folded: dict[str, str] = {}
    for model_name, file_path in model_files.items():
        # First model wins when two differ only by case.
        folded.setdefault(model_name.lower(), file_path)

    matched: list[MatchedTask] = []
    for task in tasks:
        file_path = folded.get((task.name or "").lower())
        if not file_path:
            continue
        data = task.model_dump()
        data.update(entity=task.task_id if task.task_id is not None else "", file_path=file_path)
        matched.append(MatchedTask.model_validate(data))
    return matched


def match_changed_models(
    tasks: Sequence[PipelineTask],
    model_files: Mapping[str, str],
    connector_type: str,
) -> list[MatchedTask]:
    """Filter *tasks* to the connector and match them to changed models.

    A model with no matching task is logged as a warning, not an error.
    """
    connector_tasks = filter_connector_tasks(tasks, connector_type)
    logger.info(
        "Found %d %s task(s) out of %d total task(s)",
        len(connector_tasks),
        connector_type,
        len(tasks),
    )

    matched = match_tasks(connector_tasks, model_files)
    logger.info("Matched %d task(s) to changed models", len(matched))
    for task in matched:
        logger.info("Matched task: %s (%s) -> %s", task.name, task.entity, task.file_path)

    if not matched and model_files:
        logger.warning("No tasks matched! Changed models: [%s]", ", ".join(model_files))
        logger.warning(
            "Available %s tasks: [%s]",
            connector_type,
            ", ".join(t.name for t in connector_tasks),
        )
    return matched
