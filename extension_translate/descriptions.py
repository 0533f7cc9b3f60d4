"""Generate translated description files."""
import asyncio
import logging
from typing import Dict, Sequence

from tqdm.asyncio import tqdm

from extension_translate.errors import ClientNotInitializedError, RemoteServiceError
from extension_translate.file_utils import read_text, write_text
from extension_translate.locales import Language, Locale, TranslationJob
from extension_translate.translation_client import TranslationClient

logger = logging.getLogger(__name__)


class DescriptionTranslator:
    """Translates a plain text description file into each target language."""

    def __init__(self, client: TranslationClient, dry_run: bool = False, show_progress: bool = False):
        self.client = client
        self.dry_run = dry_run
        self.show_progress = show_progress

    async def translate_description(self, source: Locale, targets: Sequence[Language]) -> Dict[str, bool]:
        """
        Create translations of the source description for every target language.

        Returns:
            Dict[str, bool]: Whether each target language (by ISO code) was written.
            Empty if the source is missing or blank.
        """
        try:
            text = read_text(source.file_path)
        except (OSError, UnicodeDecodeError) as read_exc:
            logger.error("Failed to load description file '%s': %s", source.file_path, read_exc)
            return {}
        if not text.strip():
            logger.info("Description file '%s' is empty. Nothing to translate.", source.file_path)
            return {}

        jobs = [TranslationJob(source, source.with_language(language), (text,)) for language in targets]
        results = await tqdm.gather(
            *(self._run_job(job) for job in jobs),
            desc=f"Translating {source.filename}",
            unit="language",
            disable=not self.show_progress
        )
        return {job.target.language.iso_code: ok for job, ok in zip(jobs, results)}

    async def _run_job(self, job: TranslationJob) -> bool:
        source_code = job.source.language.iso_code
        target_code = job.target.language.iso_code
        try:
            translations = await self.client.translate(job.payload, job.source.language, job.target.language)
        except ClientNotInitializedError:
            raise
        except RemoteServiceError as api_exc:
            logger.error("Failed to translate '%s' %s => %s: %s", job.source.filename, source_code, target_code, api_exc)
            return False
        except Exception as general_exc:
            logger.error("Unexpected error translating '%s' %s => %s: %s",
                         job.source.filename, source_code, target_code, general_exc, exc_info=True)
            return False
        logger.info("Translated description file %s => %s", source_code, target_code)

        if self.dry_run:
            logger.info("[Dry Run] Would write translated description to '%s'.", job.target.file_path)
            return True
        try:
            await asyncio.to_thread(write_text, job.target.file_path, translations[0])
        except OSError as write_exc:
            logger.error("Failed to write '%s' (%s => %s): %s", job.target.file_path, source_code, target_code, write_exc)
            return False
        return True
