#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import dataclasses
import os
import typing as tp

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient

from json_inserter.errors import (ConfigurationError, ConnectivityError,
                                  communication_error)
from json_inserter.models import BackendVariant, ContainerRef


class Setting:
    USE_MONGO_DB = "useMongoDb"
    DB_NAME = "dbName"
    COLLECTION_NAME = "dbCollectionName"
    COSMOS_ENDPOINT_URI = "cosmosDbEndpointUri"
    COSMOS_PRIMARY_KEY = "cosmosDbPrimaryKey"
    COSMOS_PRIMARY_KEY_SECRET = "cosmosDbPrimaryKeySecretName"
    COSMOS_PARTITION_KEY_PATH = "cosmosDbPartitionKeyPath"
    MONGO_CONNECTION_STRING = "mongoDbConnectionString"
    MONGO_CONNECTION_STRING_SECRET = "mongoDbConnectionStringSecretName"
    KEY_VAULT_NAME = "keyVaultName"
    MAX_CONCURRENT_INSERTS = "maxConcurrentInserts"


DEFAULT_PARTITION_KEY_PATH = "/id"
DEFAULT_MAX_CONCURRENT_INSERTS = 1

TRUE_VALUES = {"true"}
FALSE_VALUES = {"false"}


@dataclasses.dataclass(frozen=True)
class CosmosSettings:
    endpoint_uri: str
    primary_key: str = dataclasses.field(repr=False)
    partition_key_path: str = DEFAULT_PARTITION_KEY_PATH
    max_concurrent_inserts: int = DEFAULT_MAX_CONCURRENT_INSERTS


@dataclasses.dataclass(frozen=True)
class MongoSettings:
    connection_string: str = dataclasses.field(repr=False)


@dataclasses.dataclass(frozen=True)
class InserterSettings:
    """Everything one request needs to reach its target store"""
    variant: BackendVariant
    container: ContainerRef
    cosmos: tp.Optional[CosmosSettings] = None
    mongo: tp.Optional[MongoSettings] = None


def load_app_settings(environ: tp.Optional[tp.Mapping[str, str]] = None) -> tp.Dict[str, str]:
    """
    Return the function's app settings.

    The Functions host exposes app settings, and the Values section of
    local.settings.json when running locally, as environment variables.
    """
    return dict(os.environ if environ is None else environ)


def select_backend(flag: tp.Optional[str]) -> BackendVariant:
    """
    Resolve the useMongoDb flag into a backend variant.

    Raises:
        ConfigurationError: If the flag does not parse as a boolean
    """
    value = (flag or "").strip().lower()
    if value in TRUE_VALUES:
        return BackendVariant.BULK_STORE
    if value in FALSE_VALUES:
        return BackendVariant.ITEM_STORE
    raise ConfigurationError(f"{Setting.USE_MONGO_DB} parameter value is invalid")


def get_secret(key_vault_name: str, secretname: str) -> str:
    """
    Retrieve a secret from Azure Key Vault.

    Args:
        key_vault_name: Name of the Key Vault (without .vault.azure.net suffix)
        secretname: Name of the secret to retrieve

    Returns:
        The secret value as a string

    Raises:
        ConnectivityError: If the secret cannot be retrieved
    """
    try:
        kv_uri = f"https://{key_vault_name}.vault.azure.net"
        credential = DefaultAzureCredential()
        client = SecretClient(vault_url=kv_uri, credential=credential)
        secret = client.get_secret(secretname)
        return secret.value
    except AzureError as e:
        raise ConnectivityError(communication_error("Key Vault", e)) from e


def resolve_settings(config: tp.Mapping[str, str],
                     secret_getter: tp.Callable[[str, str], str] = get_secret) -> InserterSettings:
    """
    Validate app settings and resolve the ones the selected backend needs.

    The backend flag is checked before anything else, so a bad flag is
    reported even when other settings are missing too.

    Args:
        config: App settings mapping
        secret_getter: Callable used to fetch Key Vault secrets

    Returns:
        Frozen settings for one request

    Raises:
        ConfigurationError: If a required setting is missing or invalid
        ConnectivityError: If a Key Vault secret cannot be fetched
    """
    variant = select_backend(config.get(Setting.USE_MONGO_DB))

    _require(config, [Setting.DB_NAME, Setting.COLLECTION_NAME])
    container = ContainerRef(
        database=config[Setting.DB_NAME].strip(),
        collection=config[Setting.COLLECTION_NAME].strip(),
    )

    if variant is BackendVariant.BULK_STORE:
        connection_string = _value_or_secret(
            config, Setting.MONGO_CONNECTION_STRING,
            Setting.MONGO_CONNECTION_STRING_SECRET, secret_getter
        )
        return InserterSettings(
            variant=variant,
            container=container,
            mongo=MongoSettings(connection_string=connection_string),
        )

    _require(config, [Setting.COSMOS_ENDPOINT_URI])
    primary_key = _value_or_secret(
        config, Setting.COSMOS_PRIMARY_KEY,
        Setting.COSMOS_PRIMARY_KEY_SECRET, secret_getter
    )
    return InserterSettings(
        variant=variant,
        container=container,
        cosmos=CosmosSettings(
            endpoint_uri=config[Setting.COSMOS_ENDPOINT_URI].strip(),
            primary_key=primary_key,
            partition_key_path=_partition_key_path(config),
            max_concurrent_inserts=_max_concurrent_inserts(config),
        ),
    )


def _require(config: tp.Mapping[str, str], names: tp.List[str]):
    missing = [name for name in names if not (config.get(name) or "").strip()]
    if missing:
        raise ConfigurationError(f"Missing required parameters: {missing}")


def _value_or_secret(config: tp.Mapping[str, str], name: str, secret_setting: str,
                     secret_getter: tp.Callable[[str, str], str]) -> str:
    value = (config.get(name) or "").strip()
    if value:
        return value

    key_vault = (config.get(Setting.KEY_VAULT_NAME) or "").strip()
    secret_name = (config.get(secret_setting) or "").strip()
    if not (key_vault and secret_name):
        raise ConfigurationError(
            f"Missing required parameters: ['{name}'] "
            f"(or '{Setting.KEY_VAULT_NAME}' with '{secret_setting}')"
        )

    value = (secret_getter(key_vault, secret_name) or "").strip()
    if not value:
        raise ConfigurationError(f"Secret '{secret_name}' in Key Vault '{key_vault}' is empty")
    return value


def _partition_key_path(config: tp.Mapping[str, str]) -> str:
    path = (config.get(Setting.COSMOS_PARTITION_KEY_PATH) or "").strip()
    if not path:
        return DEFAULT_PARTITION_KEY_PATH
    if not path.startswith("/"):
        raise ConfigurationError(
            f"{Setting.COSMOS_PARTITION_KEY_PATH} must start with '/', got '{path}'"
        )
    return path


def _max_concurrent_inserts(config: tp.Mapping[str, str]) -> int:
    raw = (config.get(Setting.MAX_CONCURRENT_INSERTS) or "").strip()
    if not raw:
        return DEFAULT_MAX_CONCURRENT_INSERTS
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        raise ConfigurationError(
            f"{Setting.MAX_CONCURRENT_INSERTS} must be a positive integer, got '{raw}'"
        )
    return value
