import os

import pytest

from extension_translate.descriptions import DescriptionTranslator
from extension_translate.locales import Language, Locale


def _write_description(base, text):
    os.makedirs(base / 'en', exist_ok=True)
    (base / 'en' / 'description.txt').write_text(text, encoding='utf-8')
    return Locale(str(base), 'description.txt', Language('en', 'en'))


class TestDescriptionTranslator:

    @pytest.mark.asyncio
    async def test_description_written_verbatim(self, tmp_path, fake_backend, make_client):
        source = _write_description(tmp_path, "A simple extension.")
        backend = fake_backend({"A simple extension.": "Eine einfache Erweiterung."})
        translator = DescriptionTranslator(make_client(backend))

        outcomes = await translator.translate_description(source, [Language('de', 'de')])

        assert outcomes == {'de': True}
        assert backend.calls == [(["A simple extension."], 'en', 'de')]
        with open(tmp_path / 'de' / 'description.txt', 'r', encoding='utf-8') as f:
            assert f.read() == "Eine einfache Erweiterung."

    @pytest.mark.asyncio
    async def test_scalar_reply_is_accepted(self, tmp_path, fake_backend, make_client):
        source = _write_description(tmp_path, "Hello")
        translator = DescriptionTranslator(make_client(fake_backend(scalar_for_single=True)))

        await translator.translate_description(source, [Language('zh-CN', 'zh_CN')])

        assert (tmp_path / 'zh_CN' / 'description.txt').read_text(encoding='utf-8') == "[zh-CN] Hello"

    @pytest.mark.asyncio
    async def test_blank_description_is_a_no_op(self, tmp_path, fake_backend, make_client):
        source = _write_description(tmp_path, "  \n")
        backend = fake_backend()
        translator = DescriptionTranslator(make_client(backend))

        outcomes = await translator.translate_description(source, [Language('de', 'de')])

        assert outcomes == {}
        assert backend.calls == []
        assert not os.path.exists(tmp_path / 'de')

    @pytest.mark.asyncio
    async def test_missing_description_is_a_no_op(self, tmp_path, fake_backend, make_client):
        backend = fake_backend()
        translator = DescriptionTranslator(make_client(backend))

        outcomes = await translator.translate_description(
            Locale(str(tmp_path), 'description.txt', Language('en', 'en')), [Language('de', 'de')]
        )

        assert outcomes == {}
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_one_failed_language_does_not_block_others(self, tmp_path, fake_backend, make_client):
        source = _write_description(tmp_path, "Hello")
        translator = DescriptionTranslator(make_client(fake_backend(fail_for={'fr'})))

        outcomes = await translator.translate_description(
            source, [Language('de', 'de'), Language('fr', 'fr'), Language('es', 'es')]
        )

        assert outcomes == {'de': True, 'fr': False, 'es': True}
        assert (tmp_path / 'de' / 'description.txt').read_text(encoding='utf-8') == "[de] Hello"
        assert (tmp_path / 'es' / 'description.txt').read_text(encoding='utf-8') == "[es] Hello"
        assert not os.path.exists(tmp_path / 'fr')

    @pytest.mark.asyncio
    async def test_non_utf8_description_is_a_no_op(self, tmp_path, fake_backend, make_client):
        os.makedirs(tmp_path / 'en')
        (tmp_path / 'en' / 'description.txt').write_bytes(b"caf\xe9 \xff")
        backend = fake_backend()
        translator = DescriptionTranslator(make_client(backend))

        outcomes = await translator.translate_description(
            Locale(str(tmp_path), 'description.txt', Language('en', 'en')), [Language('de', 'de')]
        )

        assert outcomes == {}
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_backend_error_is_isolated(self, tmp_path, fake_backend, make_client):
        class BrokenForFrench(fake_backend):
            async def translate_batch(self, strings, source, target):
                if target.iso_code == 'fr':
                    raise ValueError("Unexpected number of results")
                return await super().translate_batch(strings, source, target)

        source = _write_description(tmp_path, "Hello")
        translator = DescriptionTranslator(make_client(BrokenForFrench()))

        outcomes = await translator.translate_description(source, [Language('fr', 'fr'), Language('de', 'de')])

        assert outcomes == {'fr': False, 'de': True}
        assert not os.path.exists(tmp_path / 'fr')
