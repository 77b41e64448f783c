"""Overlay Remover agent.

Hides modal overlays and popups, once or continuously through a mutation
observer process. The observer's process id is kept in host storage so
``stop_watching`` can find it from a later invocation.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..schemas.definitions import AgentDefinition, parse_definition

OVERLAY_REMOVER_ID = "overlay-remover"
WATCHER_STORAGE_KEY = "overlayWatcherId"

STANDARD_SELECTORS = [
    "[class*='modal-backdrop']",
    "[class*='overlay'][style*='fixed']",
    "[role='dialog'][aria-modal='true']",
]
AGGRESSIVE_SELECTORS = STANDARD_SELECTORS + [
    "[class*='popup']",
    "[class*='newsletter']",
    "[id*='cookie']",
]

_HIDDEN = {"display": "none !important"}

_PICK_SELECTORS: Dict[str, Any] = {
    "type": "if",
    "condition": {"type": "equals", "left": "{{config.aggressive}}", "right": "true"},
    "then": [{"type": "set", "variable": "selectors", "value": AGGRESSIVE_SELECTORS}],
    "else": [{"type": "set", "variable": "selectors", "value": STANDARD_SELECTORS}],
}

_HIDE_OVERLAYS: List[Dict[str, Any]] = [
    {"type": "addStyle", "target": "body", "styles": {"overflow": "auto", "position": "static"}},
    {
        "type": "forEach",
        "source": "selectors",
        "itemAs": "selector",
        "do": [{"type": "addStyle", "target": "{{selector}}", "styles": _HIDDEN}],
    },
]

_STOP_EXISTING_WATCHER: List[Dict[str, Any]] = [
    {"type": "storage.get", "keys": WATCHER_STORAGE_KEY, "saveAs": "stored"},
    {
        "type": "if",
        "condition": {"type": "exists", "target": f"stored.{WATCHER_STORAGE_KEY}"},
        "then": [
            {"type": "stopProcess", "processId": f"{{{{stored.{WATCHER_STORAGE_KEY}}}}}"},
            {"type": "storage.set", "items": {WATCHER_STORAGE_KEY: None}},
            {"type": "set", "variable": "stopped", "value": True},
        ],
        "else": [{"type": "set", "variable": "stopped", "value": False}],
    },
]

OVERLAY_REMOVER: Dict[str, Any] = {
    "kind": "agent",
    "id": OVERLAY_REMOVER_ID,
    "name": "Overlay Remover",
    "description": "Automatically remove modal overlays and popups from web pages",
    "version": "1.0.0",
    "tags": ["dom-manipulation", "ux", "example"],
    "configFields": [
        {
            "key": "aggressive",
            "label": "Aggressive Mode",
            "type": "select",
            "required": False,
            "default": "false",
            "helpText": "Aggressive mode may remove legitimate UI elements",
        }
    ],
    "capabilities": [
        {
            "name": "remove_overlays_once",
            "description": "Remove all current modal overlays (one-time action)",
            "actions": [_PICK_SELECTORS, *_HIDE_OVERLAYS],
        },
        {
            "name": "watch_and_remove",
            "description": "Continuously watch for and remove modal overlays",
            "isLongRunning": True,
            "actions": [
                *_STOP_EXISTING_WATCHER,
                _PICK_SELECTORS,
                *_HIDE_OVERLAYS,
                {
                    "type": "startProcess",
                    "processType": "observer",
                    "target": "body",
                    "description": "Watching for new overlays",
                    "actions": _HIDE_OVERLAYS,
                    "saveAs": "watcherId",
                },
                {"type": "storage.set", "items": {WATCHER_STORAGE_KEY: "{{watcherId}}"}},
                {"type": "return", "value": {"processId": "{{watcherId}}", "message": "Watching for overlays"}},
            ],
        },
        {
            "name": "stop_watching",
            "description": "Stop watching for overlays",
            "actions": [
                *_STOP_EXISTING_WATCHER,
                {"type": "return", "value": {"stopped": "{{stopped}}"}},
            ],
        },
    ],
}


def overlay_remover() -> AgentDefinition:
    definition = parse_definition(OVERLAY_REMOVER)
    assert isinstance(definition, AgentDefinition)
    return definition
