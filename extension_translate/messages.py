"""Generate translated messages.json files."""
import asyncio
import copy
import json
import logging
from typing import Any, Dict, List, Sequence, Tuple

from tqdm.asyncio import tqdm

from extension_translate.errors import ClientNotInitializedError, RemoteServiceError
from extension_translate.file_utils import read_json, write_json
from extension_translate.locales import Language, Locale, TranslationJob
from extension_translate.translation_client import TranslationClient

logger = logging.getLogger(__name__)

TRANSLATION_INFO_KEY = 'translationInfo'
TRANSLATION_INFO_DESCRIPTION = 'Add your name and contact info, if you want'


def _has_message(entry: Any) -> bool:
    return isinstance(entry, dict) and isinstance(entry.get('message'), str) and entry['message'] != ''


def get_messages(catalog: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """
    Collect the translatable ``message`` strings of a catalog.

    Args:
        catalog: The decoded messages.json content.

    Returns:
        A tuple of the message strings and the keys they came from, both in
        catalog order.
    """
    messages = []
    keys = []
    for key, entry in catalog.items():
        if key == TRANSLATION_INFO_KEY or not _has_message(entry):
            continue
        messages.append(entry['message'])
        keys.append(key)
    return messages, keys


def set_messages(catalog: Dict[str, Any], keys: Sequence[str], translations: Sequence[str]) -> None:
    """Write ``translations[n]`` into the ``message`` field of ``keys[n]``, in place."""
    if len(keys) != len(translations):
        raise ValueError(f"Got {len(translations)} translations for {len(keys)} messages")
    for key, translation in zip(keys, translations):
        catalog[key]['message'] = translation


def build_translated_catalog(
        catalog: Dict[str, Any],
        keys: Sequence[str],
        translations: Sequence[str],
        service_name: str
) -> Dict[str, Any]:
    """
    Return a deep copy of ``catalog`` with translated messages and an attribution block.

    Every field other than the collected ``message`` values is left as it was.
    """
    output = copy.deepcopy(catalog)
    set_messages(output, keys, translations)
    output[TRANSLATION_INFO_KEY] = {
        'message': service_name,
        'description': TRANSLATION_INFO_DESCRIPTION,
    }
    return output


class MessageCatalogTranslator:
    """Translates a source messages.json into each target language."""

    def __init__(self, client: TranslationClient, dry_run: bool = False, show_progress: bool = False):
        self.client = client
        self.dry_run = dry_run
        self.show_progress = show_progress

    async def translate_catalog(self, source: Locale, targets: Sequence[Language]) -> Dict[str, bool]:
        """
        Create translations of the source catalog for every target language.

        Target languages are processed concurrently and independently; a failure
        for one language is logged and does not affect the others.

        Args:
            source: Locale of the source messages.json.
            targets: Languages to translate into.

        Returns:
            Dict[str, bool]: Whether each target language (by ISO code) was written.
            Empty if the source catalog could not be read.
        """
        try:
            catalog = read_json(source.file_path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as read_exc:
            logger.error("Failed to load message catalog '%s': %s", source.file_path, read_exc)
            return {}
        if not isinstance(catalog, dict):
            logger.error("Message catalog '%s' must contain a JSON object.", source.file_path)
            return {}

        messages, keys = get_messages(catalog)
        logger.info("Found %d messages to translate in '%s'", len(messages), source.file_path)

        jobs = [TranslationJob(source, source.with_language(language), tuple(messages)) for language in targets]
        results = await tqdm.gather(
            *(self._run_job(job, catalog, keys) for job in jobs),
            desc=f"Translating {source.filename}",
            unit="language",
            disable=not self.show_progress
        )
        return {job.target.language.iso_code: ok for job, ok in zip(jobs, results)}

    async def _run_job(self, job: TranslationJob, catalog: Dict[str, Any], keys: List[str]) -> bool:
        source_code = job.source.language.iso_code
        target_code = job.target.language.iso_code
        try:
            translations = await self.client.translate(job.payload, job.source.language, job.target.language)
            output = build_translated_catalog(catalog, keys, translations, self.client.service_name)
        except ClientNotInitializedError:
            raise
        except RemoteServiceError as api_exc:
            logger.error("Failed to translate '%s' %s => %s: %s", job.source.filename, source_code, target_code, api_exc)
            return False
        except Exception as general_exc:
            logger.error("Unexpected error translating '%s' %s => %s: %s",
                         job.source.filename, source_code, target_code, general_exc, exc_info=True)
            return False

        logger.info("Translated %s file %s => %s", job.source.filename, source_code, target_code)

        if self.dry_run:
            logger.info("[Dry Run] Would write translated catalog to '%s'.", job.target.file_path)
            return True
        try:
            await asyncio.to_thread(write_json, job.target.file_path, output)
        except OSError as write_exc:
            logger.error("Failed to write '%s' (%s => %s): %s", job.target.file_path, source_code, target_code, write_exc)
            return False
        logger.info("Translated catalog saved to '%s'.", job.target.file_path)
        return True
