# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

class MalformedDocumentError(ValueError):
    pass

class ContextLoadingError(ValueError):
    pass

class InvalidContextError(ValueError):
    pass

class ExpansionError(ValueError):
    pass

class UnresolvedPropertyError(ValueError):
    def __init__(self, events):
        self.events = list(events)
        properties = ", ".join(e["details"]["property"] for e in self.events)
        super().__init__("{count} propert{suffix} did not expand: {properties}".format(
            count=len(self.events),
            suffix="y" if len(self.events) == 1 else "ies",
            properties=properties))
