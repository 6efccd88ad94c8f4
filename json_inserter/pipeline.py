#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import logging
import typing as tp

from json_inserter.errors import JsonInserterError
from json_inserter.inserter import insert_batch
from json_inserter.models import BackendVariant
from json_inserter.parser import parse_batch
from json_inserter.reporter import report
from json_inserter.settings import (InserterSettings, Setting, get_secret,
                                    resolve_settings, select_backend)
from json_inserter.stores import DocumentStore, create_store


async def handle_request(
    raw_body: bytes,
    config: tp.Mapping[str, str],
    store_factory: tp.Callable[[InserterSettings], DocumentStore] = create_store,
    secret_getter: tp.Callable[[str, str], str] = get_secret
) -> tp.Tuple[int, str]:
    """
    Run one insertion request end to end.

    Stages run strictly in order: backend selection, body parsing,
    connection settings (including Key Vault secrets), provisioning,
    insertion, reporting. The first failing stage ends the request and its
    error kind decides the status code.

    Args:
        raw_body: Raw POST body, expected to be a JSON array of objects
        config: App settings
        store_factory: Builds the store for the resolved settings
        secret_getter: Fetches Key Vault secrets

    Returns:
        Tuple of (status_code, message)
    """
    try:
        variant = select_backend(config.get(Setting.USE_MONGO_DB))
        batch = parse_batch(raw_body, extended_json=variant is BackendVariant.BULK_STORE)

        settings = resolve_settings(config, secret_getter=secret_getter)
        logging.info(f"Using {variant.store_name} for {settings.container}")

        store = store_factory(settings)
        result = await insert_batch(store, settings.container, batch)
    except JsonInserterError as e:
        logging.error(str(e))
        return e.status_code, str(e)

    return report(result, settings.container, settings.variant)
