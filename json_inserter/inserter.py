#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import logging

from json_inserter.models import Batch, ContainerRef, InsertionResult
from json_inserter.stores import DocumentStore


async def insert_batch(store: DocumentStore, ref: ContainerRef, batch: Batch) -> InsertionResult:
    """
    Provision the target once, then write the batch through the store.

    Provisioning is a hard precondition: if it fails no document is attempted.
    The store's client is released before returning, also on error.

    Args:
        store: Store for the selected backend
        ref: Target database and collection
        batch: Parsed documents

    Returns:
        InsertionResult for the batch

    Raises:
        ConnectivityError: If provisioning or a bulk insert fails
    """
    async with store.provision(ref) as handle:
        logging.info(f"Inserting {len(batch)} documents into {store.store_name}: {ref}")
        return await store.insert(handle, batch)
