import asyncio
import logging
import random
from typing import List, Optional, Sequence

from aiolimiter import AsyncLimiter

from extension_translate.backends import BatchResult, TranslationBackend
from extension_translate.errors import ClientNotInitializedError, RemoteServiceError
from extension_translate.locales import Language

logger = logging.getLogger(__name__)

# The Google Translation API rejects requests with more than 128 text segments
# ("Too many text segments").
MAX_STRINGS_PER_REQUEST = 128


def split_into_chunks(strings: Sequence[str], chunk_size: int) -> List[List[str]]:
    """
    Split ``strings`` into consecutive chunks of at most ``chunk_size`` items.

    Chunk ``i`` covers ``strings[i * chunk_size:(i + 1) * chunk_size]``.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [list(strings[begin:begin + chunk_size]) for begin in range(0, len(strings), chunk_size)]


def normalize_translations(result: BatchResult) -> List[str]:
    """Wrap a scalar reply from a single-item batch into a one-element list."""
    if isinstance(result, (list, tuple)):
        return list(result)
    return [result]


async def _handle_retry(attempt: int, max_retries: int, base_delay: float, description: str) -> bool:
    """
    Sleep before the next attempt using exponential backoff with jitter.

    Returns:
        bool: True if the caller should retry, False once attempts are exhausted.
    """
    if attempt >= max_retries:
        if max_retries > 1:
            logger.error("Translation of %s failed after %d attempts.", description, max_retries)
        return False
    delay = base_delay * (2 ** (attempt - 1)) + random.uniform(0, 1)
    logger.info("Retrying translation of %s in %.2f seconds (Attempt %d/%d)", description, delay, attempt, max_retries)
    await asyncio.sleep(delay)
    return True


class TranslationClient:
    """
    Translate arbitrarily long string sequences through a backend.

    Input is split into request-sized chunks that are translated concurrently
    and reassembled by chunk index, so the result always has the same length
    and order as the input. A single failed chunk fails the whole call.
    """

    def __init__(
            self,
            backend: Optional[TranslationBackend],
            max_strings_per_request: int = MAX_STRINGS_PER_REQUEST,
            max_concurrent_api_calls: int = 4,
            rate_limit: float = 10,
            rate_period: float = 1.0,
            max_retries: int = 1,
            retry_base_delay: float = 1.0
    ):
        if max_strings_per_request < 1:
            raise ValueError("max_strings_per_request must be at least 1")
        self.backend = backend
        self.max_strings_per_request = max_strings_per_request
        self.max_retries = max(1, max_retries)
        self.retry_base_delay = retry_base_delay
        self.semaphore = asyncio.Semaphore(max_concurrent_api_calls)
        self.rate_limiter = AsyncLimiter(max_rate=rate_limit, time_period=rate_period)

    @property
    def is_initialized(self) -> bool:
        return self.backend is not None

    @property
    def service_name(self) -> str:
        if self.backend is None:
            raise ClientNotInitializedError("Translation client not initialized")
        return self.backend.name

    async def translate(self, strings: Sequence[str], source: Language, target: Language) -> List[str]:
        """
        Translate ``strings`` from ``source`` to ``target``.

        Args:
            strings: The strings to translate, in order.
            source: The language of ``strings``.
            target: The language to translate into.

        Returns:
            List[str]: One translated string per input string, in input order.

        Raises:
            ClientNotInitializedError: If the client has no backend.
            RemoteServiceError: If any chunk could not be translated.
        """
        if self.backend is None:
            raise ClientNotInitializedError("Translation client not initialized")

        strings = list(strings)
        if not strings:
            return []

        chunks = split_into_chunks(strings, self.max_strings_per_request)
        results = await asyncio.gather(
            *(self._translate_chunk(index, chunk, source, target) for index, chunk in enumerate(chunks)),
            return_exceptions=True
        )

        translations: List[str] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            translations.extend(result)

        if len(translations) != len(strings):
            raise RemoteServiceError(
                f"Expected {len(strings)} translations but received {len(translations)} "
                f"({source.iso_code} => {target.iso_code})."
            )
        return translations

    async def _translate_chunk(self, index: int, chunk: List[str], source: Language, target: Language) -> List[str]:
        description = f"chunk {index} ({len(chunk)} strings, {source.iso_code} => {target.iso_code})"
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.semaphore, self.rate_limiter:
                    result = await self.backend.translate_batch(chunk, source, target)
                translations = normalize_translations(result)
                if len(translations) != len(chunk):
                    raise RemoteServiceError(
                        f"Service returned {len(translations)} translations for {len(chunk)} strings in {description}."
                    )
                logger.debug("Translated %s", description)
                return translations
            except RemoteServiceError as api_exc:
                logger.warning("Remote translation error for %s: %s", description, api_exc)
                if not await _handle_retry(attempt, self.max_retries, self.retry_base_delay, description):
                    raise
        raise RemoteServiceError(f"Translation of {description} was not attempted.")
