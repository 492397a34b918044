from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number, Validator
from textual.widgets import Button, Input, Label, Select


@dataclass
class FormField:
    key: str
    label: str
    value: Any = ""
    placeholder: str = ""
    kind: Literal["text", "integer", "number", "password", "select"] = "text"
    required: bool = True
    minimum: Optional[float] = None
    # (label, value) pairs, only for kind == "select"
    choices: Sequence[Tuple[str, Any]] = field(default_factory=tuple)


class FormModal(ModalScreen[Optional[Dict[str, Any]]]):
    """
    Generic create/edit form.

    Dismissed with {key: value} (integers already converted) on submit,
    None on cancel. Blank optional fields come back as None.
    """

    def __init__(self, title: str, fields: List[FormField], submit_text: str = "Save"):
        super().__init__()
        self.form_title = title
        self.fields = fields
        self.submit_text = submit_text

    def compose(self) -> ComposeResult:
        with Vertical(id="div-form"):
            yield Label(self.form_title, id="label-form-title")
            with VerticalScroll(id="vertscroll-form"):
                for f in self.fields:
                    yield Label(f.label + ("" if f.required else " (optional)"))
                    yield self._widget_for(f)
            with Horizontal(id="hort-form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button(self.submit_text, id="btn-submit", variant="primary")

    def _widget_for(self, f: FormField):
        widget_id = f"form-{f.key}"
        if f.kind == "select":
            return Select(
                list(f.choices),
                value=f.value if f.value not in ("", None) else Select.BLANK,
                id=widget_id,
                allow_blank=not f.required,
            )
        validators: List[Validator] = []
        if f.kind in ("integer", "number"):
            validators.append(Number(minimum=f.minimum))
        return Input(
            value="" if f.value is None else str(f.value),
            placeholder=f.placeholder,
            password=f.kind == "password",
            type="integer" if f.kind == "integer" else ("number" if f.kind == "number" else "text"),
            validators=validators,
            id=widget_id,
        )

    def on_mount(self) -> None:
        if self.fields:
            self.query_one(f"#form-{self.fields[0].key}").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    def handle_submit(self) -> None:
        values: Dict[str, Any] = {}
        for f in self.fields:
            widget = self.query_one(f"#form-{f.key}")
            if isinstance(widget, Select):
                value = None if widget.is_blank() else widget.value
                if f.required and value is None:
                    widget.focus()
                    self.notify(f"{f.label} is required.", severity="error")
                    return
                values[f.key] = value
                continue

            text = widget.value.strip()
            if not text:
                if f.required:
                    widget.focus()
                    widget.add_class("-invalid")
                    self.notify(f"{f.label} is required.", severity="error")
                    return
                values[f.key] = None
                continue
            if not widget.is_valid:
                widget.focus()
                self.notify(f"{f.label} is not valid.", severity="error")
                return
            if f.kind == "integer":
                values[f.key] = int(text)
            elif f.kind == "number":
                values[f.key] = float(text)
            else:
                values[f.key] = text
        self.dismiss(values)
