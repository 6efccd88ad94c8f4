#
# Copyright (c) 2025 by Delphix. All rights reserved.
#


class JsonInserterError(Exception):
    """Base class for errors that end a request"""
    status_code = 500


class ParseError(JsonInserterError):
    """Exception to be raised if the request body is not a JSON array of objects"""
    status_code = 400


class ConfigurationError(JsonInserterError):
    """
    Exception to be raised for missing or invalid app settings. It is reported
    as a bad request against the deployed function.
    """
    status_code = 400


class ConnectivityError(JsonInserterError):
    """Exception to be raised if a backend or Key Vault cannot be reached"""
    status_code = 500


class InsertError(ConnectivityError):
    """Exception to be raised if a bulk insert call fails as a whole"""
    pass


def parse_error(exc: Exception) -> str:
    return f"Problem with JSON input: {exc}"


def communication_error(store_name: str, exc: Exception) -> str:
    return f"Problem communicating with {store_name}: {exc}"
