"""Shared fixtures for core unit tests"""

import pytest

from jknm.core.models import LegacyBlockDocument


SAMPLE_MD = """\
---
title: Ignored
---

Uvodni odstavek.

# Jama pod Krnom

Prvi **odstavek** z besedilom.

## Oprema

- vrv
- čelada

### Podrobnosti

Globoko v sekciji.

## Zaključek

Konec.
"""


def block(type_: str, **data) -> dict:
    return {"type": type_, "data": data}


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="sample_doc")
def sample_doc_fixture():
    """A legacy block document touching every supported block type."""
    return LegacyBlockDocument.model_validate({
        "time": 1700000000000,
        "version": "2.28.0",
        "blocks": [
            block("header", text="Raziskava <b>jame</b>", level=2),
            block("paragraph", text="Prvi&nbsp;dan smo <i>prespali</i>.<br>Drugi dan ne."),
            block("list", style="ordered", items=[
                {"content": "ena", "items": []},
                {"content": "dve", "items": [{"content": "pod", "items": []}]},
            ], meta={}),
            block("image", file={"url": "https://cdn.example/jama.jpg"}, caption="Vhod"),
            block("embed", embed="https://youtube.example/v", caption=""),
            block("delimiter"),
        ],
    })
