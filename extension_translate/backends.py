"""Remote translation services.

Each backend translates one request-sized batch of strings. Chunking, retries
and concurrency limits live in ``TranslationClient``.
"""
import asyncio
import json
import logging
import os
from typing import List, Optional, Sequence, Union

import google.auth
import jsonschema
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import translate_v2
from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from extension_translate.errors import ConfigurationError, RemoteServiceError
from extension_translate.locales import Language

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_SCOPE = 'https://www.googleapis.com/auth/cloud-translation'

GOOGLE_SERVICE_NAME = 'Google Translate API'

# A reply is either an array with one string per input, or a bare string for a
# single-item batch.
TRANSLATION_RESPONSE_SCHEMA = {
    "oneOf": [
        {"type": "array", "items": {"type": "string"}},
        {"type": "string"},
    ]
}

BatchResult = Union[str, List[str]]


class TranslationBackend:
    """Interface of a remote translation service."""

    #: Human readable service name, written to the catalog attribution block.
    name = 'Translation service'

    async def translate_batch(self, strings: Sequence[str], source: Language, target: Language) -> BatchResult:
        """
        Translate one batch of strings.

        Returns:
            The translated strings in input order, or a single string when the
            service answers a one-item batch with a scalar.

        Raises:
            RemoteServiceError: If the service call fails.
        """
        raise NotImplementedError


class GoogleTranslateBackend(TranslationBackend):
    """Google Cloud Translation, basic (v2) API."""

    name = GOOGLE_SERVICE_NAME

    def __init__(self, client: translate_v2.Client, project_id: Optional[str] = None):
        self.client = client
        self.project_id = project_id

    async def translate_batch(self, strings: Sequence[str], source: Language, target: Language) -> BatchResult:
        # A bare string is sent for single-item batches; the v2 client then
        # answers with a single mapping instead of a list.
        values: Union[str, List[str]] = strings[0] if len(strings) == 1 else list(strings)
        try:
            results = await asyncio.to_thread(
                self.client.translate,
                values,
                target_language=target.iso_code,
                source_language=source.iso_code,
                format_='text',
            )
        except (google_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError, OSError) as api_exc:
            raise RemoteServiceError(
                f"Google Translate request failed ({source.iso_code} => {target.iso_code}): "
                f"{api_exc.__class__.__name__} - {api_exc}"
            ) from api_exc

        try:
            if isinstance(results, dict):
                return results['translatedText']
            return [result['translatedText'] for result in results]
        except (KeyError, TypeError) as parse_exc:
            raise RemoteServiceError(f"Unexpected Google Translate response: {results!r}") from parse_exc


class OpenAITranslateBackend(TranslationBackend):
    """Chat-completion based translation. Each batch is exchanged as a JSON array."""

    def __init__(self, client: AsyncOpenAI, model_name: str):
        self.client = client
        self.model_name = model_name
        self.name = f"OpenAI {model_name}"

    @staticmethod
    def _build_system_prompt(source: Language, target: Language) -> str:
        return f"""
You are an expert translator specializing in browser extension localization. Translate every string of the JSON array
provided by the user from language '{source.iso_code}' to language '{target.iso_code}'.

**Instructions**:
- Reply with a JSON array of strings only, with exactly one translated string per input string, in the same order.
- Do not translate or modify placeholders such as `$NAME$`, `$1` or HTML tags.
- Keep special characters and formatting such as `\\n`.
- Do not add quotation marks, brackets or explanations.
"""

    async def translate_batch(self, strings: Sequence[str], source: Language, target: Language) -> BatchResult:
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    ChatCompletionSystemMessageParam(role="system", content=self._build_system_prompt(source, target)),
                    ChatCompletionUserMessageParam(role="user", content=json.dumps(list(strings), ensure_ascii=False)),
                ],
                temperature=0.3,
                timeout=60.0,
            )
        except OpenAIError as api_exc:
            raise RemoteServiceError(
                f"OpenAI request failed ({source.iso_code} => {target.iso_code}): "
                f"{api_exc.__class__.__name__} - {api_exc}"
            ) from api_exc

        if not response.choices:
            raise RemoteServiceError(
                f"OpenAI returned no choices ({source.iso_code} => {target.iso_code})."
            )
        content = (response.choices[0].message.content or '').strip()
        try:
            translations = json.loads(content)
            jsonschema.validate(instance=translations, schema=TRANSLATION_RESPONSE_SCHEMA)
        except json.JSONDecodeError as json_exc:
            raise RemoteServiceError(f"OpenAI did not return valid JSON: {json_exc}") from json_exc
        except jsonschema.ValidationError as schema_exc:
            raise RemoteServiceError(
                f"OpenAI response did not match the expected schema: {schema_exc.message}"
            ) from schema_exc

        if isinstance(translations, list) and len(translations) != len(strings):
            raise RemoteServiceError(
                f"OpenAI returned {len(translations)} translations for {len(strings)} strings."
            )
        return translations


def _load_google_credentials(credentials_file: Optional[str]):
    """Return authorized credentials and the project id they belong to."""
    try:
        if credentials_file:
            return google.auth.load_credentials_from_file(credentials_file, scopes=[GOOGLE_TRANSLATE_SCOPE])
        return google.auth.default(scopes=[GOOGLE_TRANSLATE_SCOPE])
    except google_auth_exceptions.DefaultCredentialsError as auth_exc:
        raise ConfigurationError(f"Google credentials not available: {auth_exc}") from auth_exc


def create_google_backend(credentials_file: Optional[str] = None) -> GoogleTranslateBackend:
    """
    Build a Google Translate backend from service-account or application default credentials.

    Raises:
        ConfigurationError: If no usable credentials or project id are found.
    """
    credentials, project_id = _load_google_credentials(credentials_file)
    if not project_id:
        raise ConfigurationError(
            "projectId not specified. Set the GOOGLE_APPLICATION_CREDENTIALS environment variable "
            "or 'google_credentials_file' in config.yaml."
        )
    client = translate_v2.Client(credentials=credentials)
    logger.info("Google Translate client initialized for project '%s'", project_id)
    return GoogleTranslateBackend(client, project_id=project_id)


def create_openai_backend(model_name: str) -> OpenAITranslateBackend:
    """
    Build an OpenAI backend from the OPENAI_API_KEY environment variable.

    Raises:
        ConfigurationError: If the API key is not set.
    """
    api_key = os.environ.get('OPENAI_API_KEY')
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY environment variable not found.")
    if not api_key.startswith('sk-'):
        logger.warning("Warning: OPENAI_API_KEY does not start with 'sk-'. This may be invalid.")
    logger.info("OpenAI client initialized with model '%s'", model_name)
    return OpenAITranslateBackend(AsyncOpenAI(api_key=api_key), model_name)


def create_backend(service: str, credentials_file: Optional[str] = None,
                   model_name: str = 'gpt-4o-mini') -> TranslationBackend:
    """Create the backend named by ``service`` ('google' or 'openai')."""
    if service == 'google':
        return create_google_backend(credentials_file)
    if service == 'openai':
        return create_openai_backend(model_name)
    raise ConfigurationError(f"Unknown translation service '{service}'. Use 'google' or 'openai'.")
