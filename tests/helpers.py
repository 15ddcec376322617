# tests/helpers.py
# Constructores de bloques válidos para el registry
from __future__ import annotations

from folio.schemas.content import BlockIn


def text_block(html: str = "<p>Hola</p>") -> BlockIn:
    return BlockIn(kind="text", data={"html": html})


def hero_block(heading: str = "Welcome") -> BlockIn:
    return BlockIn(kind="hero", data={"heading": heading})
