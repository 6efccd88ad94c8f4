#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import logging
import typing as tp

from json_inserter.models import BackendVariant, ContainerRef, InsertionResult

HTTP_OK = 200


def report(result: InsertionResult, ref: ContainerRef,
           variant: BackendVariant) -> tp.Tuple[int, str]:
    """
    Render the outcome of a completed insertion.

    The bulk backend is all or nothing, so a completed bulk insert is
    reported by its total only.

    Returns:
        Tuple of (status_code, message)
    """
    if variant is BackendVariant.BULK_STORE:
        summary = f"{result.total} documents inserted successfully"
    else:
        summary = f"{result.inserted} / {result.total} documents inserted"

    message = f"{summary} in {variant.store_name}: {ref}"
    logging.info(message)
    return HTTP_OK, message
