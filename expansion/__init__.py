# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

from .checker import ExpansionResult, expand, expand_document, to_graph
from .contexts import TermDefinition, TermTable, is_absolute_iri, is_keyword
from .errors import (ContextLoadingError, ExpansionError, InvalidContextError,
                     MalformedDocumentError, UnresolvedPropertyError)
from .events import invalid_property
