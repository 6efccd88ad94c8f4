"""Shared fixtures: app settings for each backend."""

from __future__ import annotations

import pytest


@pytest.fixture()
def cosmos_config():
    return {
        "useMongoDb": "false",
        "dbName": "inventory",
        "dbCollectionName": "products",
        "cosmosDbEndpointUri": "https://example.documents.azure.com:443/",
        "cosmosDbPrimaryKey": "cosmos-key",
    }


@pytest.fixture()
def mongo_config():
    return {
        "useMongoDb": "true",
        "dbName": "inventory",
        "dbCollectionName": "products",
        "mongoDbConnectionString": "mongodb://localhost:27017",
    }
