import json
from pathlib import Path

import pytest

from utils.contexts import document_loader

ROOT = Path(__file__).resolve().parent.parent
CONTEXTS = ROOT / "static" / "contexts"
EXAMPLES = ROOT / "static" / "examples"

VC_V2 = "https://www.w3.org/ns/credentials/v2"
TYPES_CONTEXT = (EXAMPLES / "types-context.jsonld").as_uri()
RESIDES_AT = "http://example.org/residesAt"


def example_path(name):
    return EXAMPLES / name


def read_example(name):
    with example_path(name).open("r") as f:
        return json.loads(f.read())


@pytest.fixture
def loader():
    return document_loader(CONTEXTS)


@pytest.fixture
def example():
    "Returns (document, base) for a file under static/examples."
    def load(name):
        return read_example(name), example_path(name).as_uri()
    return load
