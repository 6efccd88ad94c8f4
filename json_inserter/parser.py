#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import json
import typing as tp

from bson import json_util
from bson.errors import BSONError

from json_inserter.errors import ParseError, parse_error
from json_inserter.models import Batch


def parse_batch(raw_body: bytes, extended_json: bool = False) -> Batch:
    """
    Deserialize a request body into a batch of documents.

    The body must be a JSON array whose elements are all JSON objects. Either
    the whole batch parses or a ParseError is raised; no partial batch is
    returned.

    Args:
        raw_body: Raw request body
        extended_json: Decode MongoDB Extended JSON (e.g. {"$oid": ...}) into
                       BSON types instead of plain JSON values

    Returns:
        Tuple of documents in source order

    Raises:
        ParseError: If the body is not valid JSON or has the wrong shape
    """
    try:
        text = raw_body.decode("utf-8")
        data = json_util.loads(text) if extended_json else json.loads(text)
    except (UnicodeDecodeError, ValueError, TypeError, BSONError) as e:
        raise ParseError(parse_error(e)) from e

    if not isinstance(data, list):
        raise ParseError(
            parse_error(f"expected an array of documents, got {_json_type(data)}")
        )

    for index, doc in enumerate(data):
        if not isinstance(doc, dict):
            raise ParseError(
                parse_error(f"element {index} is {_json_type(doc)}, expected an object")
            )

    return tuple(data)


def _json_type(value: tp.Any) -> str:
    if isinstance(value, dict):
        return "an object"
    if isinstance(value, list):
        return "an array"
    if isinstance(value, str):
        return "a string"
    if isinstance(value, bool):
        return "a boolean"
    if value is None:
        return "null"
    return "a number"
