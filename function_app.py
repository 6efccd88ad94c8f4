#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

"""
Azure Function that inserts a batch of JSON documents into Cosmos DB (NoSQL
API) or MongoDB, depending on the useMongoDb app setting.

The request body must be a JSON array of documents. The response reports how
many of them were persisted.
"""

import json
import logging

import azure.functions as func

from json_inserter.pipeline import handle_request
from json_inserter.settings import load_app_settings

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)


@app.route(route="JsonInserter", methods=["POST"])
async def json_inserter(req: func.HttpRequest) -> func.HttpResponse:
    """
    HTTP trigger inserting the documents posted in the request body.

    Args:
        req: HTTP request whose body is a JSON array of documents

    Returns:
        HTTP response with the insertion report or the error message
    """
    try:
        status_code, message = await handle_request(req.get_body(), load_app_settings())
    except Exception as e:
        logging.error(f"JsonInserter failed: {str(e)}", exc_info=True)
        return func.HttpResponse(
            json.dumps({"error": str(e)}), mimetype="application/json", status_code=500
        )

    return func.HttpResponse(message, mimetype="text/plain", status_code=status_code)
