"""Adaptive form discovery, filling and submission."""

from .cascade import CascadeResult, FirstSuccessRunner, Strategy
from .inference import (
    ControlSnapshot,
    FieldNameInference,
    NameSource,
    build_field_map,
    display_label,
    infer_field_name,
    label_slug,
)
from .resolver import AdaptiveFormResolver, FieldRule, pick_option_index
from .submit import FormSubmitter, SubmitContext, SubmitFailure, SubmitOutcome

__all__ = [
    "AdaptiveFormResolver",
    "CascadeResult",
    "ControlSnapshot",
    "FieldNameInference",
    "FieldRule",
    "FirstSuccessRunner",
    "FormSubmitter",
    "NameSource",
    "Strategy",
    "SubmitContext",
    "SubmitFailure",
    "SubmitOutcome",
    "build_field_map",
    "display_label",
    "infer_field_name",
    "label_slug",
    "pick_option_index",
]
