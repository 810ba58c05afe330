"""Canvas payloads for the messenger-app presentation layer.

Canvases are plain JSON-serialisable dicts.  :func:`initialize` returns the
input form; :func:`submit` handles a form submission and always returns a
renderable canvas, converting every failure into an error canvas.
"""

from __future__ import annotations

import logging

from imgreplace_claude.orchestrator import ReplacementOrchestrator, ReplacementSummary

_log = logging.getLogger("canvas")

PROCESS_BUTTON_ID = "process_button"
RESTART_BUTTON_ID = "restart_button"

INPUT_FIELDS = ("article_id", "old_image_url", "new_image_url")
"""Form input ids, in the order they are passed to the orchestrator."""

MSG_MISSING_FIELDS = "Please fill in all required fields"
MSG_UNEXPECTED = "An unexpected error occurred"


def _canvas(components: list[dict]) -> dict:
    return {"canvas": {"content": {"components": components}}}


def _text(component_id: str, text: str, style: str = "muted") -> dict:
    return {
        "type": "text",
        "id": component_id,
        "text": text,
        "align": "center",
        "style": style,
    }


def _input(component_id: str, label: str, placeholder: str) -> dict:
    return {
        "type": "input",
        "id": component_id,
        "label": label,
        "placeholder": placeholder,
    }


def _button(component_id: str, label: str, style: str) -> dict:
    return {
        "type": "button",
        "label": label,
        "style": style,
        "id": component_id,
        "action": {"type": "submit"},
    }


def initial_canvas() -> dict:
    """The input form."""
    return _canvas([
        _text("header", "🖼️ AI Image Replacer", style="header"),
        _text("description", "Replace images in articles using AI visual matching"),
        _input("article_id", "Article ID", "e.g., 4727254"),
        _input(
            "old_image_url", "Image to Replace (URL)",
            "https://example.com/old-image.png",
        ),
        _input("new_image_url", "New Image URL", "https://example.com/new-image.png"),
        _button(PROCESS_BUTTON_ID, "Find & Replace Images", "primary"),
    ])


def processing_canvas() -> dict:
    """Shown while the comparison is running."""
    return _canvas([
        _text("processing", "🤖 AI Processing...", style="header"),
        _text("status", "Loading article and analyzing images..."),
    ])


def result_canvas(summary: ReplacementSummary) -> dict:
    """Render a terminal summary."""
    return _canvas([
        _text(
            "success",
            "✅ Success!" if summary.success else "⚠️ Completed",
            style="header",
        ),
        _text("result_message", summary.message),
        _text("details", summary.details),
        _button(RESTART_BUTTON_ID, "Replace More Images", "primary"),
    ])


def error_canvas(message: str) -> dict:
    """Render an error with a retry button."""
    return _canvas([
        _text("error", "❌ Error", style="header"),
        _text("error_message", message or MSG_UNEXPECTED),
        _button(RESTART_BUTTON_ID, "Try Again", "secondary"),
    ])


def initialize() -> dict:
    """Handle the initialize request."""
    return initial_canvas()


def submit(payload: dict, orchestrator: ReplacementOrchestrator) -> dict:
    """Handle a canvas submission.

    Only the process button triggers a run; any other component (the
    restart buttons) returns the input form.

    Args:
        payload: Request body with ``component_id`` and ``input_values``.
        orchestrator: Runs the replacement.

    Returns:
        Result canvas, or an error canvas for missing inputs and failures.
    """
    if payload.get("component_id") != PROCESS_BUTTON_ID:
        return initial_canvas()

    values = payload.get("input_values") or {}
    inputs = [str(values.get(name) or "").strip() for name in INPUT_FIELDS]
    if not all(inputs):
        return error_canvas(MSG_MISSING_FIELDS)

    article_id, old_url, new_url = inputs
    try:
        summary = orchestrator.run(article_id, old_url, new_url)
    except Exception as e:
        _log.error("Image replacement error: %s: %s", type(e).__name__, e)
        return error_canvas(str(e))
    return result_canvas(summary)
