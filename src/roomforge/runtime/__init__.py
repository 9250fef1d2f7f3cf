"""Runtime projection of authored content for the playback engine."""

from roomforge.runtime.dsl import translate_action, translate_condition
from roomforge.runtime.handoff import STORAGE_KEY, PlaytestHandoff, write_runtime_payload
from roomforge.runtime.projector import (
    build_protagonist,
    build_runtime_payload,
    default_runtime_payload,
)

__all__ = [
    "STORAGE_KEY",
    "PlaytestHandoff",
    "build_protagonist",
    "build_runtime_payload",
    "default_runtime_payload",
    "translate_action",
    "translate_condition",
    "write_runtime_payload",
]
