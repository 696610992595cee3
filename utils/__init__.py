# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

from pyld import jsonld

from settings import get_settings
from utils.contexts import document_loader


def configured_loader(settings=None, allow_local=True):
    settings = settings or get_settings()
    return document_loader(settings.CONTEXT_DIR,
                           allow_remote=settings.ALLOW_REMOTE_CONTEXTS,
                           timeout=settings.REMOTE_TIMEOUT,
                           allow_local=allow_local)


# Override PyLD's default Requests-based document loader
# so bundled contexts resolve without network access.
jsonld.set_document_loader(configured_loader())
