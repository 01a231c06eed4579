"""Semantic field-name inference for controls of an unknown HTML form.

Controls are snapshotted in the page by :data:`SNAPSHOT_SCRIPT` and the naming
rules run here, in Python, over :class:`ControlSnapshot` values. The precedence
of signals is fixed:

1. ``name`` attribute
2. ``id`` attribute
3. ``aria-label`` attribute
4. text of the associated ``<label>`` (slug transform)
5. ``data-name`` / ``data-field`` attributes
6. option-content sniffing for ``<select>`` controls
7. positional ``field_<index>``

Machine-authored attributes beat label text, label text beats content
sniffing, and position is the last resort. Reordering would misname fields
on partially annotated forms.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from voicebook.core.models import ControlKind, FormField, SelectOption


TIME_FIELD = "appointment_time"
SERVICE_FIELD = "service_type"

SERVICE_VOCABULARY = (
    "Checkup",
    "Cleaning",
    "Consultation",
    "Extraction",
    "Root Canal",
    "Whitening",
)

_MERIDIEM_RE = re.compile(r"AM|PM")
_CLOCK_RE = re.compile(r"\d{1,2}:\d{2}")
_LABEL_NOISE_RE = re.compile(r"[:*]")
_WHITESPACE_RE = re.compile(r"\s+")

_INPUT_KINDS = {
    "text": ControlKind.TEXT,
    "email": ControlKind.EMAIL,
    "tel": ControlKind.TEL,
    "date": ControlKind.DATE,
    "time": ControlKind.TIME,
}


# Collects raw signals for every input/textarea/select under the form, in
# document order. Runs with the form element as its argument.
SNAPSHOT_SCRIPT = """
(form) => {
  const controls = Array.from(form.querySelectorAll('input, textarea, select'));
  return controls.map((el, index) => {
    const tag = el.tagName.toLowerCase();
    const byFor = el.id ? document.querySelector(`label[for="${CSS.escape(el.id)}"]`) : null;
    const label = byFor || el.closest('label');
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return {
      index: index,
      tag: tag,
      type: el.type || tag,
      name: el.getAttribute('name') || '',
      id: el.id || '',
      aria_label: el.getAttribute('aria-label') || '',
      label_text: label ? (label.textContent || '') : '',
      data_name: el.getAttribute('data-name') || '',
      data_field: el.getAttribute('data-field') || '',
      placeholder: el.getAttribute('placeholder') || '',
      options: tag === 'select'
        ? Array.from(el.options).map((opt) => ({ text: opt.text || '', value: opt.value || '' }))
        : [],
      visible: rect.width > 0 && rect.height > 0
        && style.visibility !== 'hidden' && style.display !== 'none',
    };
  });
}
"""


class NameSource(str, Enum):
    """Which signal produced a field name."""

    NAME = "name"
    ID = "id"
    ARIA_LABEL = "aria-label"
    LABEL = "label"
    DATA_ATTRIBUTE = "data-attribute"
    OPTIONS = "options"
    POSITION = "position"


@dataclass(frozen=True)
class ControlSnapshot:
    """Raw attributes of one form control as read from the DOM."""

    index: int
    tag: str
    type: str = ""
    name: str = ""
    id: str = ""
    aria_label: str = ""
    label_text: str = ""
    data_name: str = ""
    data_field: str = ""
    placeholder: str = ""
    options: Sequence[SelectOption] = field(default_factory=tuple)
    visible: bool = True

    @classmethod
    def from_dom(cls, raw: Mapping[str, Any]) -> "ControlSnapshot":
        return cls(
            index=int(raw.get("index", 0)),
            tag=str(raw.get("tag", "")).lower(),
            type=str(raw.get("type") or ""),
            name=str(raw.get("name") or ""),
            id=str(raw.get("id") or ""),
            aria_label=str(raw.get("aria_label") or ""),
            label_text=str(raw.get("label_text") or ""),
            data_name=str(raw.get("data_name") or ""),
            data_field=str(raw.get("data_field") or ""),
            placeholder=str(raw.get("placeholder") or ""),
            options=tuple(SelectOption(**opt) for opt in raw.get("options") or ()),
            visible=bool(raw.get("visible", True)),
        )

    @property
    def is_select(self) -> bool:
        return self.tag == "select"

    @property
    def kind(self) -> ControlKind:
        if self.tag == "select":
            return ControlKind.SELECT
        if self.tag == "textarea":
            return ControlKind.TEXTAREA
        return _INPUT_KINDS.get((self.type or "text").lower(), ControlKind.OTHER)


@dataclass(frozen=True)
class FieldNameInference:
    name: str
    source: NameSource


def display_label(raw: str) -> str:
    """Label text for humans: drop ``:``/``*`` markers and surrounding blanks."""
    return _LABEL_NOISE_RE.sub("", raw or "").strip()


def label_slug(raw: str) -> str:
    """Label text as a lookup key: ``"Full Name *"`` -> ``"full_name"``."""
    return _WHITESPACE_RE.sub("_", display_label(raw).lower())


def sniff_select_options(options: Iterable[SelectOption]) -> Optional[str]:
    """Guess a select's purpose from its option texts, or None."""
    texts = [opt.text for opt in options if opt.text and opt.text.strip()]
    joined = " ".join(texts)
    if _MERIDIEM_RE.search(joined) or _CLOCK_RE.search(joined):
        return TIME_FIELD
    if any(term in joined for term in SERVICE_VOCABULARY):
        return SERVICE_FIELD
    return None


def resolve_field_name(control: ControlSnapshot) -> FieldNameInference:
    if control.name:
        return FieldNameInference(control.name, NameSource.NAME)
    if control.id:
        return FieldNameInference(control.id, NameSource.ID)
    if control.aria_label:
        return FieldNameInference(control.aria_label, NameSource.ARIA_LABEL)

    slug = label_slug(control.label_text)
    if slug:
        return FieldNameInference(slug, NameSource.LABEL)

    data_attr = control.data_name or control.data_field
    if data_attr:
        return FieldNameInference(data_attr, NameSource.DATA_ATTRIBUTE)

    if control.is_select:
        sniffed = sniff_select_options(control.options)
        if sniffed:
            return FieldNameInference(sniffed, NameSource.OPTIONS)

    return FieldNameInference(f"field_{control.index}", NameSource.POSITION)


def infer_field_name(control: ControlSnapshot) -> str:
    """Best-guess semantic name for ``control``; never empty."""
    return resolve_field_name(control).name


def to_form_field(control: ControlSnapshot) -> FormField:
    return FormField(
        index=control.index,
        name=infer_field_name(control),
        kind=control.kind,
        input_type=control.type or control.tag,
        label=display_label(control.label_text),
        placeholder=control.placeholder,
        options=list(control.options),
        visible=control.visible,
    )


def describe_control(control: ControlSnapshot) -> str:
    descriptor = f'{control.type or control.tag} - placeholder: "{control.placeholder}"'
    if control.is_select:
        options = [opt.text or opt.value for opt in control.options]
        descriptor += f" | Options: [{', '.join(o for o in options if o)}]"
    return descriptor


def build_field_map(controls: Iterable[ControlSnapshot]) -> Dict[str, str]:
    """Map inferred name -> descriptor; later duplicates overwrite earlier ones."""
    fields: Dict[str, str] = {}
    for control in controls:
        fields[infer_field_name(control)] = describe_control(control)
    return fields


def snapshots_from_dom(raw_controls: Iterable[Mapping[str, Any]]) -> List[ControlSnapshot]:
    return [ControlSnapshot.from_dom(raw) for raw in raw_controls]


__all__ = [
    "ControlSnapshot",
    "FieldNameInference",
    "NameSource",
    "SERVICE_FIELD",
    "SERVICE_VOCABULARY",
    "SNAPSHOT_SCRIPT",
    "TIME_FIELD",
    "build_field_map",
    "describe_control",
    "display_label",
    "infer_field_name",
    "label_slug",
    "resolve_field_name",
    "sniff_select_options",
    "snapshots_from_dom",
    "to_form_field",
]
