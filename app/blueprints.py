"""Plugin discovery: manifests and blueprints of every package under ``plugins/``."""

from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from flask import Blueprint, Flask

PLUGINS_ROOT = Path(__file__).resolve().parent.parent / "plugins"


@dataclass(slots=True)
class PluginInfo:
    name: str
    manifest: dict[str, Any] | None
    blueprints: list[Blueprint] = field(default_factory=list)


def iter_plugins(package: str = "plugins") -> Iterator[PluginInfo]:
    """Import each plugin package and its ``api`` module."""

    if not PLUGINS_ROOT.exists():
        return
    for module_info in sorted(pkgutil.iter_modules([str(PLUGINS_ROOT)]), key=lambda item: item.name):
        if not module_info.ispkg:
            continue
        dotted = f"{package}.{module_info.name}"
        module = importlib.import_module(dotted)
        manifest = getattr(module, "manifest", None)
        api = importlib.import_module(f"{dotted}.api")
        found = list(getattr(api, "blueprints", None) or [])
        if not found and getattr(api, "bp", None) is not None:
            found.append(api.bp)
        yield PluginInfo(
            name=module_info.name,
            manifest=dict(manifest) if manifest else None,
            blueprints=found,
        )


def register_plugins(app: Flask, plugin_settings: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """Register plugin blueprints on ``app`` and return their manifests sorted by title.

    ``summary`` and ``docs`` in ``plugin_settings`` override the packaged
    manifest values.
    """

    plugin_settings = plugin_settings or {}
    manifests: list[dict[str, Any]] = []
    for plugin in iter_plugins():
        for blueprint in plugin.blueprints:
            app.register_blueprint(blueprint)
        if not plugin.manifest:
            continue
        manifest = plugin.manifest
        overrides = plugin_settings.get(manifest.get("blueprint") or plugin.name) or {}
        for key in ("summary", "docs"):
            if overrides.get(key):
                manifest[key] = overrides[key]
        manifests.append(manifest)
    manifests.sort(key=lambda item: item["title"].lower())
    return manifests


__all__ = ["PluginInfo", "iter_plugins", "register_plugins"]
