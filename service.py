# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

import json
import logging
import uuid

from flask import Flask, request, abort, Response
from rdflib.plugin import plugins
from rdflib.serializer import Serializer
from mimeparse import best_match, parse_mime_type

from settings import get_settings
from utils import configured_loader
from utils.contexts import bundled_contexts
from expansion import (ContextLoadingError, ExpansionError, InvalidContextError,
                       MalformedDocumentError, expand, expand_document, to_graph)

app = Flask(__name__)
app.config["LOCAL_CONTEXTS"] = get_settings().SERVICE_LOCAL_CONTEXTS

ReportType = "application/json"
ExpandedType = "application/ld+json"


def supported_mimetypes(rdflib_type):
    """
    For a given RDF plugin type (e.g., Parser, Serializer),
    return a list of all plugin names of that type whose name
    is also a valid mime type.
    """
    for plugin in plugins(None, rdflib_type):
        try:
            (type, subtype, _) = parse_mime_type(plugin.name)
        except ValueError:
            continue
        if type and subtype and type != "*":
            yield "{type}/{subtype}".format(type=type, subtype=subtype)


def get_content_location(request):
    """
    Retrieve preferred base URI from HTTP request header or generate one otherwise.
    """
    return request.headers.get('content-location') or \
        "urn:uuid:{guid}".format(guid=uuid.uuid4())


def flag(name):
    return request.args.get(name, "").lower() in ("1", "true", "yes", "on")


def json_response(data, status=200, mimetype=ReportType):
    return Response(json.dumps(data, indent=2), status, mimetype=mimetype)


"""
Cache all available output mimetypes. The checker report comes first so it
wins when the client accepts anything.
"""
input_mimetypes = [ExpandedType, "application/json"]
output_mimetypes = [ReportType, ExpandedType] + \
    [m for m in dict.fromkeys(supported_mimetypes(Serializer)) if m not in (ReportType, ExpandedType)]


@app.route("/expansions", methods=["POST"])
def expansions():
    input_format = best_match(input_mimetypes, request.headers.get('content-type', ReportType))
    output_format = best_match(output_mimetypes, request.headers.get('accept', ReportType))

    if not input_format:
        return abort(415)                   # Unsupported Media Type

    if not output_format:
        return abort(406)                   # Not Acceptable

    if not request.data:
        return Response("No Content", 204)  # No Content

    try:
        document = json.loads(request.data)
    except ValueError:
        return abort(400)                   # Bad Request

    base = get_content_location(request)
    # file: contexts and paths stay off unless the deployment allows them
    loader = configured_loader(allow_local=app.config["LOCAL_CONTEXTS"])
    try:
        result = expand(document, loader=loader, base=base)
    except MalformedDocumentError:
        return abort(400)
    except (ContextLoadingError, InvalidContextError) as e:
        app.logger.info("Unusable context: %s", e)
        return abort(Response(str(e), 422))  # Unprocessable Entity

    if flag("lint"):
        for event in result.events:
            app.logger.warning("%s: %s", event["code"], event["details"]["property"])

    if flag("safe") and result.events:
        resp = json_response({"error": "Safe mode validation error",
                              "events": result.events}, 422)
        resp.headers['X-JsonLd-Warnings'] = str(len(result.events))
        return resp

    if output_format == ReportType:
        resp = json_response(result.to_json())
    else:
        try:
            expanded = expand_document(document, loader=loader, base=base)
        except (ContextLoadingError, ExpansionError) as e:
            return abort(Response(str(e), 422))
        if output_format == ExpandedType:
            resp = json_response(expanded, mimetype=ExpandedType)
        else:
            content = to_graph(expanded, identifier=base).serialize(format=output_format)
            resp = Response(content, mimetype=output_format)

    resp.headers['Content-Location'] = base
    resp.headers['X-JsonLd-Warnings'] = str(len(result.events))
    resp.headers['Vary'] = "Accept"
    return resp


@app.route("/contexts", methods=["GET"])
def contexts():
    return json_response(sorted(bundled_contexts(get_settings().CONTEXT_DIR)))


if __name__ == '__main__':
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    app.logger.info("Supported output formats: {}".format(output_mimetypes))
    app.run(debug=False, host=settings.HOST, port=settings.PORT)
