# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

"""
Structured events emitted while checking a document. The shape mirrors the
events reported by JSON-LD processors in safe mode.
"""

InvalidProperty = "invalid property"
DropMessage = "Dropping property that did not expand into an absolute IRI or keyword."


def event(code, message, details, level="warning"):
    return {"type": ["JsonLdEvent"],
            "code": code,
            "level": level,
            "message": message,
            "details": details}


def invalid_property(property, expanded_property=None):
    return event(InvalidProperty, DropMessage,
                 {"property": property,
                  "expandedProperty": expanded_property or property})
