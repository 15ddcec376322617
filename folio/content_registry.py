# folio/content_registry.py
# Registry de tipos de bloque: JSON Schema (draft 2020-12) de `data` y `settings`
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


BLOCK_SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "background": {"enum": ["default", "muted", "dark"]},
        "alignment": {"enum": ["left", "center"]},
        "fullWidth": {"type": "boolean"},
    },
    "additionalProperties": False,
}

DEFAULT_BLOCK_SETTINGS: Dict[str, Any] = {
    "background": "default",
    "alignment": "left",
    "fullWidth": False,
}

_CTA_ITEM = {
    "type": "object",
    "properties": {
        "label": {"type": "string", "minLength": 1},
        "href": {"type": "string", "minLength": 1},
        "variant": {"enum": ["primary", "secondary", "ghost"]},
    },
    "required": ["label", "href"],
}


@dataclass
class BlockKind:
    key: str
    label: str
    data_schema: Dict[str, Any]
    # Datos iniciales del editor al agregar el bloque
    defaults: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "data_schema": self.data_schema,
            "settings_schema": BLOCK_SETTINGS_SCHEMA,
            "defaults": self.defaults or {},
        }


def build_block_registry() -> Dict[str, BlockKind]:
    hero = BlockKind(
        key="hero",
        label="Hero",
        data_schema={
            "type": "object",
            "properties": {
                "eyebrow": {"type": "string"},
                "heading": {"type": "string", "minLength": 1},
                "subheading": {"type": "string"},
                "ctas": {"type": "array", "items": _CTA_ITEM},
            },
            "required": ["heading"],
        },
        defaults={"heading": "Untitled hero"},
    )
    media = BlockKind(
        key="media",
        label="Media",
        data_schema={
            "type": "object",
            "properties": {
                "url": {"type": "string", "minLength": 1},
                "alt": {"type": "string"},
                "caption": {"type": "string"},
            },
            "required": ["url"],
        },
    )
    grid = BlockKind(
        key="grid",
        label="Grid",
        data_schema={
            "type": "object",
            "properties": {
                "heading": {"type": "string"},
                "columns": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": {"type": "string", "minLength": 1},
                            "body": {"type": "string"},
                        },
                        "required": ["title"],
                    },
                },
            },
            "required": ["columns"],
        },
        defaults={"columns": [{"title": "Column"}]},
    )
    text = BlockKind(
        key="text",
        label="Rich text",
        data_schema={
            "type": "object",
            "properties": {"html": {"type": "string"}},
            "required": ["html"],
        },
        defaults={"html": ""},
    )
    cta = BlockKind(
        key="cta",
        label="Call to action",
        data_schema={
            "type": "object",
            "properties": {
                "heading": {"type": "string", "minLength": 1},
                "body": {"type": "string"},
                "ctas": {"type": "array", "minItems": 1, "items": _CTA_ITEM},
            },
            "required": ["heading", "ctas"],
        },
    )
    return {k.key: k for k in (hero, media, grid, text, cta)}


BLOCK_REGISTRY: Dict[str, BlockKind] = build_block_registry()


def get_block_kind(key: str) -> Optional[BlockKind]:
    return BLOCK_REGISTRY.get(key)


def block_kind_keys() -> List[str]:
    return list(BLOCK_REGISTRY.keys())
