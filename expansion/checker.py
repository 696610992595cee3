# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

import json
import logging
import re

from pyld import jsonld
from rdflib import Graph

from . import events
from .contexts import TermTable, is_keyword, is_resolved
from .errors import (ContextLoadingError, ExpansionError,
                     MalformedDocumentError, UnresolvedPropertyError)

logger = logging.getLogger(__name__)

# Keywords whose values are nested JSON-LD structures to walk into.
NESTED_KEYWORDS = ("@graph", "@list", "@set", "@included", "@reverse", "@nest")

# Keys of this form are reserved for future keywords and ignored
KEYWORD_FORM = re.compile(r"^@[a-zA-Z]+$")


class ExpansionResult:
    def __init__(self, expanded, properties, events, table):
        self.expanded = expanded
        self.properties = properties
        self.events = events
        self.table = table

    @property
    def ok(self):
        return not self.events

    @property
    def dropped(self):
        return [e["details"]["property"] for e in self.events]

    def raise_for_warnings(self):
        if self.events:
            raise UnresolvedPropertyError(self.events)
        return self

    def to_json(self):
        return {"expanded": self.expanded,
                "properties": self.properties,
                "events": self.events}

    def __repr__(self):
        return "%s(properties=%d, events=%d)" % (
            self.__class__.__name__, len(self.properties), len(self.events))


class Expansion:
    """
    A single pass over a document. Every key and every @type value is looked
    up in the active term table. Lookups are independent of one another: a
    node's type never decides which properties it may carry.
    """

    def __init__(self, table):
        self.table = table
        self.events = []
        self.properties = {}
        self._dropped = set()

    def run(self, document):
        # the root @context is already merged into (or replaced by) self.table
        return self.node(document, self.table, root=True)

    def drop(self, key, attempted):
        logger.debug("dropping %s (expanded to %s)", key, attempted)
        if key in self._dropped:
            return
        self._dropped.add(key)
        self.events.append(events.invalid_property(key, attempted))

    def node(self, node, table, root=False):
        if "@context" in node and not root:
            table = table.extend(node["@context"])

        result = {}
        for (key, value) in node.items():
            if key == "@context":
                continue
            if KEYWORD_FORM.match(key) and not is_keyword(key):
                logger.debug("ignoring keyword-like key %s", key)
                continue
            iri = table.expand_iri(key)
            if iri is None or not is_resolved(iri):
                self.drop(key, iri or key)
                continue

            if iri == "@type":
                types = self.types(value, table)
                if types:
                    add_value(result, "@type", types)
            elif iri == "@id" or iri == "@value":
                result[iri] = value
            elif is_keyword(iri):
                result[iri] = self.value(value, table) if iri in NESTED_KEYWORDS else value
            else:
                self.properties.setdefault(key, iri)
                definition = table.definition(key)
                container = table.map_container(key)
                if definition is not None and definition.type == "@json":
                    expanded = value
                elif container is not None and isinstance(value, dict):
                    expanded = self.map(container, value, table)
                else:
                    expanded = self.value(value, table)
                if table.is_reverse(key):
                    add_value(result.setdefault("@reverse", {}), iri, expanded)
                else:
                    add_value(result, iri, expanded)
        return result

    def types(self, value, table):
        result = []
        for term in (value if isinstance(value, list) else [value]):
            if not isinstance(term, str):
                raise MalformedDocumentError("@type values must be strings, got {!r}".format(term))
            iri = table.expand_iri(term)
            if iri is None or not is_resolved(iri):
                self.drop(term, iri or term)
            else:
                result.append(iri)
        return result

    def value(self, value, table):
        if isinstance(value, list):
            return [self.value(v, table) for v in value]
        if isinstance(value, dict):
            return self.node(value, table)
        return value

    def map(self, container, value, table):
        """
        Expands a language, index, id or type map. Its keys are languages,
        index values, IRIs or type terms, never properties, so only the
        values are walked.
        """
        result = []
        for (key, item) in value.items():
            for entry in (item if isinstance(item, list) else [item]):
                if container == "@language":
                    if entry is None:
                        continue
                    result.append({"@value": entry} if key == "@none" else
                                  {"@value": entry, "@language": key.lower()})
                    continue
                expanded = self.value(entry, table)
                if not isinstance(expanded, dict):
                    expanded = {"@id": expanded} if container == "@type" else {"@value": expanded}
                if key != "@none":
                    if container == "@index":
                        expanded.setdefault("@index", key)
                    elif container == "@id":
                        expanded.setdefault("@id", table.expand_iri(key) if ":" in key else key)
                    else:
                        expanded["@type"] = self.types(key, table) + expanded.get("@type", [])
                result.append(expanded)
        return result


def add_value(result, key, value):
    "Sets `key` on `result`, collecting values when several keys expand to the same IRI."
    if key not in result:
        result[key] = value
        return
    existing = result[key]
    result[key] = (existing if isinstance(existing, list) else [existing]) + \
        (value if isinstance(value, list) else [value])


def context_chain_of(document, context_chain=None):
    if context_chain is not None:
        return context_chain
    return document.get("@context")


def expand(document, context_chain=None, loader=None, base=None):
    """
    Checks that every property and type term of `document` expands to an
    absolute IRI or keyword under the ordered `context_chain`.

    When `context_chain` is None the document's own @context is used,
    otherwise the chain replaces it. The returned ExpansionResult holds the
    expanded form (unresolved keys left out), the resolved key-to-IRI
    mapping and one warning event per distinct key that did not resolve.
    """
    if not isinstance(document, dict):
        raise MalformedDocumentError("A JSON-LD document must be a JSON object.")

    table = TermTable.from_chain(context_chain_of(document, context_chain),
                                 loader=loader, base=base)
    expansion = Expansion(table)
    expanded = expansion.run(document)
    if expansion.events:
        logger.info("%d propert%s dropped: %s", len(expansion.events),
                    "y" if len(expansion.events) == 1 else "ies",
                    ", ".join(e["details"]["property"] for e in expansion.events))
    return ExpansionResult(expanded, expansion.properties, expansion.events, table)


def with_context(document, context_chain=None):
    if context_chain is None:
        return document
    return {**document, "@context": context_chain}


def expand_document(document, context_chain=None, loader=None, base=None):
    "Runs pyld's standard expansion over the same document and chain."
    if not isinstance(document, dict):
        raise MalformedDocumentError("A JSON-LD document must be a JSON object.")
    options = {"documentLoader": loader or jsonld.get_document_loader()}
    if base:
        options["base"] = base
    try:
        return jsonld.expand(with_context(document, context_chain), options)
    except jsonld.JsonLdError as e:
        if e.code in ("loading remote context failed", "loading document failed"):
            raise ContextLoadingError(str(e)) from e
        raise ExpansionError(str(e)) from e


def to_graph(expanded, identifier=None):
    "Loads an expanded JSON-LD document into an rdflib Graph."
    graph = Graph(identifier=identifier)
    graph.parse(data=json.dumps(expanded), format="json-ld")
    return graph
