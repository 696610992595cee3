# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

import json
import logging
import re
from collections import namedtuple
from urllib.parse import urljoin

from pyld import jsonld

from .errors import ContextLoadingError, InvalidContextError

logger = logging.getLogger(__name__)

KEYWORDS = frozenset([
    "@base", "@container", "@context", "@default", "@direction", "@embed",
    "@explicit", "@graph", "@id", "@import", "@included", "@index", "@json",
    "@language", "@list", "@nest", "@none", "@omitDefault", "@prefix",
    "@preserve", "@propagate", "@protected", "@requireAll", "@reverse",
    "@set", "@type", "@value", "@version", "@vocab"])

ABSOLUTE_IRI = re.compile(r"^([A-Za-z][A-Za-z0-9+\-.]*|_):[^\s]*$")

TermDefinition = namedtuple("TermDefinition", ["term", "iri", "reverse", "type", "container", "source"])
Override = namedtuple("Override", ["term", "previous", "current", "source"])

# Containers whose values are maps keyed by language, index, IRI or type
MAP_CONTAINERS = frozenset(["@language", "@index", "@id", "@type"])

_InProgress = object()


def is_keyword(value):
    return isinstance(value, str) and value in KEYWORDS


def is_absolute_iri(value):
    return isinstance(value, str) and bool(ABSOLUTE_IRI.match(value))


def is_resolved(value):
    return is_keyword(value) or is_absolute_iri(value)


class TermTable:
    """
    A flat term-to-IRI table built by merging an ordered chain of context
    sources, left to right. Later sources shadow earlier ones.

    Type terms and predicate terms share the one table. Nothing here records
    which predicates "belong" to which type: scoped contexts attached to a
    term definition are folded into the same table as everything else.
    """

    def __init__(self, loader=None, base=None):
        self.loader = loader or jsonld.get_document_loader()
        self.base = base
        self.terms = {}
        self.vocab = None
        self.overrides = []
        self._loading = []
        # term -> number of the top-level source that last defined it
        self._origins = {}
        self._source = 0

    @classmethod
    def from_chain(cls, chain, loader=None, base=None):
        return cls(loader, base).merge(chain)

    def copy(self):
        table = self.__class__(self.loader, self.base)
        table.terms = dict(self.terms)
        table.vocab = self.vocab
        table.overrides = list(self.overrides)
        table._origins = dict(self._origins)
        table._source = self._source
        return table

    def extend(self, chain):
        "Returns a new table with `chain` merged on top of this one."
        return self.copy().merge(chain)

    def reset(self):
        self.terms = {}
        self.vocab = None
        self._origins = {}

    def merge(self, source, base=None, label=None):
        """
        Merges `source` on top of the table. Each item of a top-level list is
        a separate source: a term redefined by a later one is recorded in
        `overrides`. Redefinitions within one source (scoped contexts folded
        into the table, nested references) are not.
        """
        base = base or self.base
        for item in (source if isinstance(source, list) else [source]):
            self._source += 1
            self._merge(item, base, label)
        return self

    def _merge(self, source, base, label):
        if source is None:
            logger.debug("null context: resetting term table")
            self.reset()
        elif isinstance(source, list):
            for item in source:
                self._merge(item, base, label)
        elif isinstance(source, str):
            self._merge_reference(source, base)
        elif isinstance(source, dict):
            self._merge_local(source, base, label or "inline")
        else:
            raise InvalidContextError(
                "Invalid context source of type {}".format(type(source).__name__))

    def _merge_reference(self, reference, base):
        url = urljoin(base, reference) if base else reference
        if url in self._loading:
            raise ContextLoadingError("Recursive context inclusion: {}".format(url))
        self._loading.append(url)
        try:
            document = self.load(url)
            if not isinstance(document, dict) or "@context" not in document:
                raise InvalidContextError("{} does not contain an @context".format(url))
            self._merge(document["@context"], url, url)
        finally:
            self._loading.pop()

    def load(self, url):
        logger.debug("loading context %s", url)
        try:
            remote = self.loader(url, {})
        except jsonld.JsonLdError as e:
            raise ContextLoadingError("Unable to load context {}".format(url)) from e
        document = remote.get("document")
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except ValueError as e:
                raise ContextLoadingError("Context {} is not valid JSON".format(url)) from e
        return document

    def _merge_local(self, local, base, label):
        if "@import" in local:
            imported = local["@import"]
            if not isinstance(imported, str):
                raise InvalidContextError("@import must be a string")
            self._merge_reference(imported, base)

        if "@vocab" in local:
            vocab = local["@vocab"]
            if vocab is not None and not isinstance(vocab, str):
                raise InvalidContextError("@vocab must be a string or null")
            self.vocab = self._expand_with(vocab, local, {}, label, []) if vocab else None

        defined = {}
        scoped = []
        for term in local:
            if term.startswith("@"):
                # @vocab and @import are handled above, the rest map nothing
                continue
            self._define(term, local, defined, label, scoped)

        for context in scoped:
            self._merge(context, base, label)

    def _define(self, term, local, defined, label, scoped):
        state = defined.get(term)
        if state is True:
            return
        if state is _InProgress:
            raise InvalidContextError("Cyclic IRI mapping for term \"{}\"".format(term))
        defined[term] = _InProgress

        value = local[term]
        if value is None:
            definition = None
        else:
            if isinstance(value, str):
                value = {"@id": value}
            if not isinstance(value, dict):
                raise InvalidContextError("Invalid definition for term \"{}\"".format(term))
            container = value.get("@container")
            if "@reverse" in value:
                iri = self._expand_with(value["@reverse"], local, defined, label, scoped)
                definition = TermDefinition(term, iri, True, value.get("@type"), container, label)
            elif "@id" in value and value["@id"] is None:
                definition = None
            elif "@id" in value:
                iri = self._expand_with(value["@id"], local, defined, label, scoped)
                definition = TermDefinition(term, iri, False, value.get("@type"), container, label)
            else:
                iri = self._expand_with(term, local, defined, label, scoped, own=True)
                if not is_resolved(iri):
                    raise InvalidContextError(
                        "Term \"{}\" has no @id and does not expand to an IRI".format(term))
                definition = TermDefinition(term, iri, False, value.get("@type"), container, label)
            if value.get("@context") is not None:
                scoped.append(value["@context"])

        self._set(term, definition)
        defined[term] = True

    def _set(self, term, definition):
        previous = self.terms.get(term)
        if previous is not None and definition is not None and \
                self._origins.get(term) != self._source and \
                (previous.iri, previous.reverse) != (definition.iri, definition.reverse):
            logger.debug("term %s redefined: %s -> %s (%s)",
                         term, previous.iri, definition.iri, definition.source)
            self.overrides.append(Override(term, previous.iri, definition.iri, definition.source))
        self.terms[term] = definition
        self._origins[term] = self._source

    def _expand_with(self, value, local, defined, label, scoped, own=False):
        "Expands an IRI inside a local context, defining its dependencies first."
        if not isinstance(value, str):
            raise InvalidContextError("IRI mappings must be strings, got {!r}".format(value))
        if is_keyword(value):
            return value
        if not own and value in local:
            self._define(value, local, defined, label, scoped)
        if ":" in value:
            prefix = value.split(":", 1)[0]
            if prefix in local and prefix != value:
                self._define(prefix, local, defined, label, scoped)
        if own:
            return self._expand_unmapped(value)
        return self.expand_iri(value)

    def expand_iri(self, value):
        """
        Expands a term, compact IRI or IRI against the table as a
        vocabulary-relative IRI. Returns None for terms defined as null.
        """
        if is_keyword(value):
            return value
        if value in self.terms:
            definition = self.terms[value]
            return definition.iri if definition is not None else None
        return self._expand_unmapped(value)

    def _expand_unmapped(self, value):
        if ":" in value:
            prefix, suffix = value.split(":", 1)
            if prefix == "_" or suffix.startswith("//"):
                return value
            definition = self.terms.get(prefix)
            if definition is not None and not definition.reverse and not is_keyword(definition.iri):
                return definition.iri + suffix
            return value
        if self.vocab is not None:
            return self.vocab + value
        return value

    def definition(self, term):
        return self.terms.get(term)

    def is_reverse(self, term):
        definition = self.terms.get(term)
        return definition is not None and definition.reverse

    def __contains__(self, term):
        return self.terms.get(term) is not None

    def to_json(self):
        return {term: definition.iri
                for (term, definition) in sorted(self.terms.items())
                if definition is not None}

    def map_container(self, term):
        "Returns the map container (@language, @index, @id or @type) of `term`, if any."
        definition = self.terms.get(term)
        if definition is None or definition.container is None:
            return None
        containers = definition.container
        for container in (containers if isinstance(containers, list) else [containers]):
            if container in MAP_CONTAINERS:
                return container
        return None
