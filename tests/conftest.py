import json
import os

import pytest

from extension_translate.backends import TranslationBackend
from extension_translate.errors import RemoteServiceError
from extension_translate.locales import Configuration, Language, Locale
from extension_translate.translation_client import TranslationClient


class FakeBackend(TranslationBackend):
    """
    In-memory stand-in for a remote translation service.

    Strings found in ``translations`` are replaced by their mapping, anything
    else becomes ``"[<target>] <text>"``. Every call is recorded in ``calls``.
    """
    name = "Fake Translate"

    def __init__(self, translations=None, fail_for=(), scalar_for_single=False):
        self.translations = translations or {}
        self.fail_for = set(fail_for)
        self.scalar_for_single = scalar_for_single
        self.calls = []

    async def translate_batch(self, strings, source, target):
        self.calls.append((list(strings), source.iso_code, target.iso_code))
        if target.iso_code in self.fail_for:
            raise RemoteServiceError(f"Unsupported language pair {source.iso_code} => {target.iso_code}")
        translated = [self.translations.get(text, f"[{target.iso_code}] {text}") for text in strings]
        if self.scalar_for_single and len(translated) == 1:
            return translated[0]
        return translated


@pytest.fixture
def fake_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def make_client():
    """Factory for TranslationClient instances without a meaningful rate limit."""
    def _make(backend, **kwargs):
        kwargs.setdefault('rate_limit', 1000)
        return TranslationClient(backend, **kwargs)
    return _make


@pytest.fixture
def english():
    return Language(iso_code='en', directory_name='en')


@pytest.fixture
def extension_tree(tmp_path, english):
    """
    A source messages.json and description.txt laid out the way extension
    packaging tools expect, plus the matching Configuration.
    """
    locales_dir = tmp_path / '_locales'
    descriptions_dir = tmp_path / 'descriptions'
    os.makedirs(locales_dir / 'en')
    os.makedirs(descriptions_dir / 'en')

    catalog = {
        "extName": {"message": "Photo Screen Saver", "description": "Extension name"},
        "greeting": {
            "message": "Hello $USER$",
            "placeholders": {"user": {"content": "$1", "example": "Mike"}}
        },
        "ignored": {"description": "No message here"},
        "farewell": {"message": "Bye"}
    }
    with open(locales_dir / 'en' / 'messages.json', 'w', encoding='utf-8') as f:
        json.dump(catalog, f, indent=2)
    with open(descriptions_dir / 'en' / 'description.txt', 'w', encoding='utf-8') as f:
        f.write("A simple extension.")

    configuration = Configuration(
        messages=Locale(str(locales_dir), 'messages.json', english),
        description=Locale(str(descriptions_dir), 'description.txt', english),
        languages=(
            Language('de', 'de'),
            Language('fr', 'fr'),
            Language('pt-BR', 'pt_BR'),
        )
    )
    return {
        "locales_dir": str(locales_dir),
        "descriptions_dir": str(descriptions_dir),
        "catalog": catalog,
        "configuration": configuration,
    }
