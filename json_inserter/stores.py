#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

"""
Document stores for the two supported backends.

Both stores provision their target (database, then collection) with
create-if-absent calls and release the client when the request ends. They
differ in how a batch is written:

- CosmosItemStore writes documents one by one. A failed document is logged
  and skipped, the rest of the batch is still attempted.
- MongoBulkStore writes the whole batch with a single insert_many call. The
  call either succeeds for every document or fails the request.
"""

import abc
import asyncio
import contextlib
import dataclasses
import json
import logging
import typing as tp

from azure.core.exceptions import AzureError
from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient
from bson.errors import BSONError
from pymongo import AsyncMongoClient
from pymongo import errors as mongo_errors

from json_inserter.errors import (ConnectivityError, InsertError,
                                  communication_error)
from json_inserter.models import (Batch, BackendVariant, ContainerRef, Document,
                                  InsertionResult, PerDocumentFailure)
from json_inserter.settings import (CosmosSettings, InserterSettings,
                                    MongoSettings)

# Logging interval for large batches
PROGRESS_LOG_INTERVAL = 100


@dataclasses.dataclass(frozen=True)
class ProvisionedHandle:
    """Request-scoped handle on a provisioned container or collection"""
    ref: ContainerRef
    target: tp.Any


class DocumentStore(abc.ABC):
    variant: BackendVariant

    @property
    def store_name(self) -> str:
        return self.variant.store_name

    @abc.abstractmethod
    def provision(self, ref: ContainerRef) -> tp.AsyncContextManager[ProvisionedHandle]:
        """
        Ensure the database and collection exist and yield a handle on them.

        The underlying client is closed when the context exits.

        Raises:
            ConnectivityError: If the backend cannot be reached or provisioned
        """

    @abc.abstractmethod
    async def insert(self, handle: ProvisionedHandle, batch: Batch) -> InsertionResult:
        """Write the batch through a handle obtained from provision()"""

    def _connectivity_error(self, exc: Exception) -> ConnectivityError:
        message = communication_error(self.store_name, exc)
        return ConnectivityError(message)


class CosmosItemStore(DocumentStore):
    variant = BackendVariant.ITEM_STORE

    def __init__(self, settings: CosmosSettings, client_factory: tp.Callable = CosmosClient):
        self._settings = settings
        self._client_factory = client_factory

    @contextlib.asynccontextmanager
    async def provision(self, ref: ContainerRef) -> tp.AsyncIterator[ProvisionedHandle]:
        try:
            client = self._client_factory(self._settings.endpoint_uri,
                                          credential=self._settings.primary_key)
        except (AzureError, ValueError, TypeError) as e:
            raise self._connectivity_error(e) from e

        try:
            try:
                database = await client.create_database_if_not_exists(id=ref.database)
                container = await database.create_container_if_not_exists(
                    id=ref.collection,
                    partition_key=PartitionKey(path=self._settings.partition_key_path)
                )
            except (AzureError, ValueError) as e:
                raise self._connectivity_error(e) from e

            logging.info(f"Provisioned {self.store_name} container {ref}")
            yield ProvisionedHandle(ref=ref, target=container)
        finally:
            await client.close()

    async def insert(self, handle: ProvisionedHandle, batch: Batch) -> InsertionResult:
        """
        Insert documents one at a time with bounded concurrency.

        Each document produces its own outcome and the counts are reduced once
        all inserts have finished. With max_concurrent_inserts of 1 the
        documents are written sequentially in batch order.

        Args:
            handle: Handle on the Cosmos container
            batch: Documents to insert

        Returns:
            InsertionResult with the number of successful inserts
        """
        semaphore = asyncio.Semaphore(self._settings.max_concurrent_inserts)
        tasks = [
            self._insert_one(handle.target, index, doc, semaphore)
            for index, doc in enumerate(batch)
        ]

        failures: tp.List[PerDocumentFailure] = []
        for i in range(0, len(tasks), PROGRESS_LOG_INTERVAL):
            chunk = tasks[i:i + PROGRESS_LOG_INTERVAL]
            chunk_results = await asyncio.gather(*chunk)
            failures.extend(failure for failure in chunk_results if failure is not None)
            if len(tasks) > PROGRESS_LOG_INTERVAL:
                logging.info(f"Processed {i + len(chunk)} / {len(tasks)} documents")

        for failure in failures:
            _log_insertion_error(failure, batch[failure.index])

        return InsertionResult(total=len(batch), inserted=len(batch) - len(failures))

    @staticmethod
    async def _insert_one(container, index: int, doc: Document,
                          semaphore: asyncio.Semaphore) -> tp.Optional[PerDocumentFailure]:
        async with semaphore:
            try:
                await container.create_item(body=dict(doc), enable_automatic_id_generation=True)
            except (AzureError, ValueError, TypeError) as e:
                return PerDocumentFailure(index=index, cause=e)
        return None


class MongoBulkStore(DocumentStore):
    variant = BackendVariant.BULK_STORE

    def __init__(self, settings: MongoSettings, client_factory: tp.Callable = AsyncMongoClient):
        self._settings = settings
        self._client_factory = client_factory

    @contextlib.asynccontextmanager
    async def provision(self, ref: ContainerRef) -> tp.AsyncIterator[ProvisionedHandle]:
        try:
            client = self._client_factory(self._settings.connection_string)
        except (mongo_errors.PyMongoError, ValueError, TypeError) as e:
            raise self._connectivity_error(e) from e

        try:
            try:
                # Forces server selection and authentication
                await client.admin.command("ping")
                database = client[ref.database]
                if ref.collection not in await database.list_collection_names():
                    await self._create_collection(database, ref.collection)
            except mongo_errors.PyMongoError as e:
                raise self._connectivity_error(e) from e

            logging.info(f"Provisioned {self.store_name} collection {ref}")
            yield ProvisionedHandle(ref=ref, target=database[ref.collection])
        finally:
            await client.close()

    @staticmethod
    async def _create_collection(database, name: str):
        try:
            await database.create_collection(name)
        except mongo_errors.CollectionInvalid:
            # Created by a concurrent request after the listing
            logging.info(f"Collection '{name}' already exists")

    async def insert(self, handle: ProvisionedHandle, batch: Batch) -> InsertionResult:
        """
        Insert the whole batch with one call.

        The driver does not report per-document outcomes here, so the result
        is all or nothing: a failed call raises and no partial count is made.

        Raises:
            InsertError: If the bulk insert fails
        """
        if not batch:
            return InsertionResult(total=0, inserted=0)

        try:
            await handle.target.insert_many([dict(doc) for doc in batch])
        except (mongo_errors.PyMongoError, BSONError, OverflowError) as e:
            raise InsertError(f"{communication_error(self.store_name, e)} - Inserting") from e

        return InsertionResult(total=len(batch), inserted=len(batch))


def create_store(settings: InserterSettings) -> DocumentStore:
    """Build the store for the selected backend"""
    if settings.variant is BackendVariant.BULK_STORE:
        return MongoBulkStore(settings.mongo)
    return CosmosItemStore(settings.cosmos)


def _log_insertion_error(failure: PerDocumentFailure, doc: Document):
    logging.error(
        f"Problem inserting document {failure.index}: {failure.cause}\n"
        f"Content: {json.dumps(doc, default=str)}"
    )
