"""
Translate a browser extension's messages.json and description file into every
language listed in an input configuration file.
"""
import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from extension_translate.app_config import AppConfig, load_app_config
from extension_translate.backends import create_backend
from extension_translate.descriptions import DescriptionTranslator
from extension_translate.errors import ConfigurationError
from extension_translate.locales import Configuration, load_input_configuration
from extension_translate.messages import MessageCatalogTranslator
from extension_translate.translation_client import TranslationClient

logger = logging.getLogger(__name__)


def _log_summary(label: str, outcomes: Dict[str, bool]) -> None:
    failed = sorted(code for code, ok in outcomes.items() if not ok)
    succeeded = len(outcomes) - len(failed)
    if failed:
        logger.warning("%s: translated %d language(s), failed for: %s", label, succeeded, ', '.join(failed))
    else:
        logger.info("%s: translated %d language(s).", label, succeeded)


async def run(
        configuration: Configuration,
        client: TranslationClient,
        dry_run: bool = False,
        show_progress: bool = False
) -> int:
    """
    Translate the message catalog and the description into every configured language.

    Both passes run concurrently. Per-language failures are logged and do not
    change the exit status.

    Returns:
        int: 0 once the run was started, 1 if the client is not initialized.
    """
    if not client.is_initialized:
        logger.critical("Translation client not initialized. Check your translation service credentials.")
        return 1

    languages = configuration.languages
    logger.info("Translating into %d language(s) with %s.", len(languages), client.service_name)

    messages_translator = MessageCatalogTranslator(client, dry_run=dry_run, show_progress=show_progress)
    description_translator = DescriptionTranslator(client, dry_run=dry_run, show_progress=show_progress)

    message_outcomes, description_outcomes = await asyncio.gather(
        messages_translator.translate_catalog(configuration.messages, languages),
        description_translator.translate_description(configuration.description, languages)
    )
    _log_summary(configuration.messages.filename, message_outcomes)
    _log_summary(configuration.description.filename, description_outcomes)
    return 0


def create_translation_client(app_config: AppConfig) -> TranslationClient:
    """
    Build the translation client described by ``app_config``.

    Raises:
        ConfigurationError: If the service credentials are missing or invalid.
    """
    backend = create_backend(
        app_config.translation_service,
        credentials_file=app_config.google_credentials_file,
        model_name=app_config.model_name
    )
    return TranslationClient(
        backend,
        max_strings_per_request=app_config.max_strings_per_request,
        max_concurrent_api_calls=app_config.max_concurrent_api_calls,
        rate_limit=app_config.rate_limit,
        rate_period=app_config.rate_period,
        max_retries=app_config.max_retries,
        retry_base_delay=app_config.retry_base_delay
    )


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="extension-translate",
        description="Translate browser extension locale files with a machine translation service."
    )
    parser.add_argument("input", help="JSON file naming the source locales and the target languages")
    parser.add_argument("--dry-run", action="store_true", help="translate but do not write any files")
    parser.add_argument("--service", choices=["google", "openai"],
                        help="translation service (overrides translation_service in config.yaml)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point. Returns the process exit status."""
    args = _parse_args(argv)
    app_config = load_app_config()
    if args.service:
        app_config.translation_service = args.service
    dry_run = args.dry_run or app_config.dry_run

    try:
        configuration = load_input_configuration(args.input)
        client = create_translation_client(app_config)
    except ConfigurationError as config_exc:
        logger.critical("ERROR: %s", config_exc)
        return 1

    return asyncio.run(run(configuration, client, dry_run=dry_run, show_progress=app_config.show_progress))


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
