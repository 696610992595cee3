# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

import json
import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from pyld import jsonld

logger = logging.getLogger(__name__)

LoadingFailed = "loading document failed"


def getdocument(path, url=None):
    try:
        with open(path) as f:
            return json.loads(f.read())
    except (OSError, ValueError) as e:
        raise jsonld.JsonLdError("Could not load document.",
                                 "jsonld.LoadDocumentError",
                                 {"url": url or str(path)},
                                 code=LoadingFailed) from e


def remote_document(document, url, content_type="application/ld+json"):
    return {"contentType": content_type,
            "contextUrl": None,
            "documentUrl": url,
            "document": document}


def bundled_contexts(context_dir):
    """
    Reads index.json from `context_dir`, which maps context URLs to the local
    files holding a copy of them.
    """
    index = Path(context_dir) / "index.json"
    if not index.is_file():
        return {}
    with index.open("r") as f:
        entries = json.loads(f.read())
    return {url: dict(entry, path=Path(context_dir) / entry["file"])
            for (url, entry) in entries.items()}


def local_path(url):
    "Returns the filesystem path of a file: URL or plain path, None otherwise."
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    if parsed.scheme == "" or (len(parsed.scheme) == 1 and url[1:3] in (":\\", ":/")):
        return Path(url)
    return None


def document_loader(context_dir=None, allow_remote=False, timeout=None, allow_local=True):
    """
    Builds a pyld document loader that serves bundled contexts, then local
    files and file: URLs when `allow_local`, and falls back to pyld's
    requests loader only when `allow_remote`.
    """
    bundled = bundled_contexts(context_dir) if context_dir else {}
    remote = jsonld.requests_document_loader(timeout=timeout) if allow_remote else None

    def loader(url, options={}):
        if url in bundled:
            entry = bundled[url]
            logger.debug("serving bundled context %s from %s", url, entry["path"])
            return remote_document(getdocument(entry["path"], url), url,
                                   entry.get("contentType", "application/ld+json"))

        path = local_path(url) if allow_local else None
        if path is not None:
            logger.debug("loading local context %s", path)
            return remote_document(getdocument(path, url), url)

        if remote is not None and urlparse(url).scheme in ("http", "https"):
            logger.info("fetching remote context %s", url)
            return remote(url, options)

        raise jsonld.JsonLdError("Context is not bundled and loading it is disabled.",
                                 "jsonld.LoadDocumentError",
                                 {"url": url},
                                 code=LoadingFailed)

    return loader
