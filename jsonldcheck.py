# SPDX-FileCopyrightText: © 2023-2024 Devon D. Sparks
# SPDX-License-Identifier: AGPL-3.0

import argparse
import json
import logging
import sys
from pathlib import Path
from urllib.parse import urlparse

from settings import get_settings
from utils import configured_loader
from expansion import (ContextLoadingError, ExpansionError, InvalidContextError,
                       MalformedDocumentError, UnresolvedPropertyError,
                       TermTable, expand, expand_document, to_graph)

logger = logging.getLogger("jsonldcheck")

Failed = 1
Unusable = 2


def read_document(file):
    "Returns the parsed document and the base IRI to resolve its contexts against."
    try:
        if file == "-":
            return json.loads(sys.stdin.read()), None
        path = Path(file).resolve()
        with path.open("r") as f:
            return json.loads(f.read()), path.as_uri()
    except OSError as e:
        raise MalformedDocumentError("Unable to read {}: {}".format(file, e.strerror))
    except ValueError as e:
        raise MalformedDocumentError("{} is not valid JSON: {}".format(file, e))


def context_source(value):
    """
    A -c value is an inline JSON object, a URL, or a path relative to the
    working directory.
    """
    if value.lstrip().startswith("{"):
        try:
            return json.loads(value)
        except ValueError:
            raise argparse.ArgumentTypeError("invalid inline context: {}".format(value))
    if not urlparse(value).scheme:
        return Path(value).resolve().as_uri()
    return value


def context_chain(args):
    return args.context if args.context else None


def emit_events(events, stream):
    for event in events:
        stream.write(json.dumps(event) + "\n")


def do_expand(args, stdout, stderr):
    document, base = read_document(args.file)
    base = args.base or base
    loader = configured_loader()

    result = expand(document, context_chain(args), loader=loader, base=base)
    if args.lint:
        emit_events(result.events, stderr)
    if args.safe:
        result.raise_for_warnings()

    expanded = expand_document(document, context_chain(args), loader=loader, base=base)
    if args.serialization:
        stdout.write(to_graph(expanded, identifier=base).serialize(format=args.serialization))
    else:
        stdout.write(json.dumps(expanded, indent=2) + "\n")
    return 0


def do_context(args, stdout, stderr):
    if args.file:
        document, base = read_document(args.file)
        chain = args.context or document.get("@context")
    else:
        chain, base = args.context or [], None
    table = TermTable.from_chain(chain, loader=configured_loader(), base=args.base or base)
    report = {"terms": table.to_json(),
              "vocab": table.vocab,
              "overrides": [o._asdict() for o in table.overrides]}
    stdout.write(json.dumps(report, indent=2) + "\n")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="jsonldcheck",
        description="Check that every property of a JSON-LD document expands to an absolute IRI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    commands = parser.add_subparsers(dest="command", required=True)

    chain_args = argparse.ArgumentParser(add_help=False)
    chain_args.add_argument("-c", "--context", dest="context", action="append", type=context_source,
                            help="Context source (URL, path or inline JSON object). "
                                 "Repeat to build an ordered chain that replaces the document's @context")
    chain_args.add_argument("-b", "--base", dest="base", help="Base IRI for relative context references")

    expand_cmd = commands.add_parser("expand", parents=[chain_args],
                                     help="Expand a document and report dropped properties")
    expand_cmd.add_argument("--safe", action="store_true",
                            help="Fail when any property does not expand")
    expand_cmd.add_argument("--lint", action="store_true",
                            help="Write a JSON event to stderr for every dropped property")
    expand_cmd.add_argument("-s", "--serialization", dest="serialization",
                            help="Emit an RDF serialization (e.g. turtle, nt) instead of expanded JSON-LD")
    expand_cmd.add_argument("file", help="JSON-LD input file, or - for stdin")
    expand_cmd.set_defaults(handler=do_expand)

    context_cmd = commands.add_parser("context", parents=[chain_args],
                                      help="Print the merged term table of a context chain")
    context_cmd.add_argument("file", nargs="?", help="JSON-LD document whose @context to merge")
    context_cmd.set_defaults(handler=do_context)
    return parser


def main(argv=None, stdout=None, stderr=None):
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else get_settings().LOG_LEVEL.upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.handler(args, stdout, stderr)
    except UnresolvedPropertyError as e:
        if not args.lint:
            emit_events(e.events, stderr)
        stderr.write("Safe mode validation error: {}\n".format(e))
        return Failed
    except (MalformedDocumentError, ContextLoadingError, InvalidContextError, ExpansionError) as e:
        logger.debug("unusable input", exc_info=True)
        stderr.write("Error: {}\n".format(e))
        return Unusable


if __name__ == "__main__":
    sys.exit(main())
