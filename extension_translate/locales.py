"""Locale value types and loading of the input configuration file."""
import dataclasses
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import jsonschema

from extension_translate.errors import ConfigurationError
from extension_translate.file_utils import read_json

_LANGUAGE_SCHEMA = {
    "type": "object",
    "properties": {
        "iso_code": {"type": "string", "minLength": 1},
        # A folder name under the locale base path, never a path of its own.
        "dir": {"type": "string", "pattern": r"^(?!\.{1,2}$)[^/\\]+$"},
    },
    "required": ["iso_code", "dir"],
}

_LOCALE_SCHEMA = {
    "type": "object",
    "properties": {
        "path": {"type": "string"},
        "filename": {"type": "string", "minLength": 1},
        "language": _LANGUAGE_SCHEMA,
    },
    "required": ["path", "filename", "language"],
}

# Shape of the JSON file that names the source files and the target languages.
INPUT_CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "messages": _LOCALE_SCHEMA,
        "description": _LOCALE_SCHEMA,
        "languages": {"type": "array", "items": _LANGUAGE_SCHEMA},
    },
    "required": ["messages", "description", "languages"],
}


@dataclass(frozen=True)
class Language:
    """A target or source language.

    ``directory_name`` is the folder the extension packaging tools expect, which
    can differ from the ISO code (e.g. ``zh_CN`` for ``zh-CN``).
    """
    iso_code: str
    directory_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Language":
        return cls(iso_code=data['iso_code'], directory_name=data['dir'])


@dataclass(frozen=True)
class Locale:
    """One file on disk: ``base_path/language.directory_name/filename``."""
    base_path: str
    filename: str
    language: Language

    @property
    def directory(self) -> str:
        return os.path.join(self.base_path, self.language.directory_name)

    @property
    def file_path(self) -> str:
        return os.path.join(self.directory, self.filename)

    def with_language(self, language: Language) -> "Locale":
        """Return a copy of this locale pointing at ``language``."""
        return dataclasses.replace(self, language=language)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Locale":
        return cls(
            base_path=data['path'],
            filename=data['filename'],
            language=Language.from_dict(data['language']),
        )


@dataclass(frozen=True)
class TranslationJob:
    """Strings from one source locale to be translated for one target locale."""
    source: Locale
    target: Locale
    payload: Tuple[str, ...]


@dataclass(frozen=True)
class Configuration:
    """The parsed input configuration. Read once, never mutated."""
    messages: Locale
    description: Locale
    languages: Tuple[Language, ...]


def parse_input_configuration(data: Any) -> Configuration:
    """
    Validate and convert a decoded input configuration.

    Args:
        data: The decoded JSON document.

    Returns:
        Configuration: The parsed configuration.

    Raises:
        ConfigurationError: If the document does not match INPUT_CONFIG_SCHEMA.
    """
    try:
        jsonschema.validate(instance=data, schema=INPUT_CONFIG_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        location = '/'.join(str(part) for part in schema_exc.absolute_path) or '<root>'
        raise ConfigurationError(
            f"Invalid input configuration at '{location}': {schema_exc.message}"
        ) from schema_exc

    return Configuration(
        messages=Locale.from_dict(data['messages']),
        description=Locale.from_dict(data['description']),
        languages=tuple(Language.from_dict(language) for language in data['languages']),
    )


def load_input_configuration(file_path: str) -> Configuration:
    """
    Load the input configuration JSON file.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not JSON, or invalid.
    """
    try:
        data = read_json(file_path)
    except json.JSONDecodeError as json_exc:
        raise ConfigurationError(f"Failed to parse '{file_path}': {json_exc}") from json_exc
    except OSError as os_exc:
        raise ConfigurationError(f"Failed to load '{file_path}': {os_exc}") from os_exc
    return parse_input_configuration(data)
