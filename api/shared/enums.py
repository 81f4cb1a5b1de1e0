"""Shared enumerations."""

from enum import StrEnum


class ActivityType(StrEnum):
    CREATE_VERSION = "CREATE_VERSION"
    RESTORE_VERSION = "RESTORE_VERSION"
    DELETE_VERSION = "DELETE_VERSION"


class ItemType(StrEnum):
    FILE = "FILE"
    FOLDER = "FOLDER"
