"""Tests del CategoryResolver con labelers stub."""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import FailingLabeler, StubLabeler, make_image_bytes
from rubbish_classifier.categories import CATEGORY_NAMES, Category
from rubbish_classifier.errors import InvalidImageError
from rubbish_classifier.resolver import RANDOM_FALLBACK_POOL
from rubbish_classifier.settings import Settings


class TestMapping:
    @pytest.mark.parametrize("name", CATEGORY_NAMES)
    def test_canonical_labels(self, make_resolver, png_bytes, name):
        assert make_resolver(StubLabeler(name)).resolve(png_bytes) == Category(name)

    def test_keyword_label(self, make_resolver, png_bytes):
        assert make_resolver(StubLabeler("Cardboard box")).resolve(png_bytes) == Category.PAPER

    def test_unmatched_label_is_unknown(self, make_resolver, png_bytes):
        assert make_resolver(StubLabeler("a zebra")).resolve(png_bytes) == Category.UNKNOWN

    def test_labeler_receives_data_uri(self, make_resolver, png_bytes):
        labeler = StubLabeler("glass")
        make_resolver(labeler).resolve(png_bytes)
        assert labeler.calls[0].startswith("data:image/png;base64,")

    def test_base64_string_input(self, make_resolver, png_b64):
        labeler = StubLabeler("metal")
        assert make_resolver(labeler).resolve(png_b64) == Category.METAL
        assert labeler.calls == [f"data:image/png;base64,{png_b64}"]

    def test_logs_raw_label_and_category(self, make_resolver, png_bytes, caplog):
        with caplog.at_level(logging.INFO, logger="rubbish_classifier"):
            make_resolver(StubLabeler("Soda can")).resolve(png_bytes)
        assert 'AI said: "Soda can" -> Mapped to: "metal"' in caplog.text

    def test_resolving_the_result_again_is_idempotent(self, make_resolver, png_bytes):
        first = make_resolver(StubLabeler("egg carton")).resolve(png_bytes)
        second = make_resolver(StubLabeler(first.value)).resolve(png_bytes)
        assert first == second == Category.PAPER


class TestFallback:
    def test_failure_uses_default_category(self, make_resolver, png_bytes):
        assert make_resolver(FailingLabeler()).resolve(png_bytes) == Category.PLASTIC

    def test_configured_default_category(self, make_resolver, png_bytes):
        cfg = Settings(fallback_category="unknown")
        assert make_resolver(FailingLabeler(), cfg).resolve(png_bytes) == Category.UNKNOWN

    @pytest.mark.parametrize("label", ["", "   ", None])
    def test_empty_label_uses_fallback(self, make_resolver, png_bytes, label):
        assert make_resolver(StubLabeler(label)).resolve(png_bytes) == Category.PLASTIC

    def test_failure_is_logged_as_warning(self, make_resolver, png_bytes, caplog):
        with caplog.at_level(logging.WARNING, logger="rubbish_classifier"):
            make_resolver(FailingLabeler("OpenAI API error: 429")).resolve(png_bytes)
        assert "429" in caplog.text

    @pytest.mark.parametrize(
        "exc", [ConnectionError("socket reset"), RuntimeError("boom"), KeyError("choices"), TimeoutError()]
    )
    def test_any_labeler_exception_uses_fallback(self, make_resolver, png_bytes, exc):
        assert make_resolver(StubLabeler(error=exc)).resolve(png_bytes) == Category.PLASTIC

    def test_unexpected_exception_is_logged_with_traceback(self, make_resolver, png_bytes, caplog):
        with caplog.at_level(logging.WARNING, logger="rubbish_classifier"):
            make_resolver(StubLabeler(error=RuntimeError("boom"))).resolve(png_bytes)
        record = next(r for r in caplog.records if r.exc_info)
        assert record.exc_info[0] is RuntimeError

    def test_unexpected_exception_follows_random_policy(self, make_resolver, random_settings, png_bytes):
        resolver = make_resolver(StubLabeler(error=RuntimeError("boom")), random_settings, seed=3)
        assert resolver.resolve(png_bytes) in RANDOM_FALLBACK_POOL

    def test_random_policy_draws_from_pool(self, make_resolver, random_settings, png_bytes):
        resolver = make_resolver(FailingLabeler(), random_settings, seed=7)
        seen = {resolver.resolve(png_bytes) for _ in range(200)}
        assert seen == set(RANDOM_FALLBACK_POOL)

    def test_random_policy_also_applies_to_empty_label(self, make_resolver, random_settings, png_bytes):
        resolver = make_resolver(StubLabeler(""), random_settings, seed=1)
        assert resolver.resolve(png_bytes) in RANDOM_FALLBACK_POOL


class TestInputErrors:
    @pytest.mark.parametrize("bad", [b"garbage", "", 3.14, "data:text/plain,hello", "!!! not base64 ###"])
    def test_invalid_image_raises_before_labeling(self, make_resolver, bad):
        labeler = StubLabeler("paper")
        with pytest.raises(InvalidImageError):
            make_resolver(labeler).resolve(bad)
        assert labeler.calls == []


class EchoLabeler:
    """Etiqueta según el color de la imagen: cada llamada depende sólo de su entrada."""

    def __init__(self, by_uri):
        self.by_uri = by_uri

    def label(self, image_uri: str) -> str:
        return self.by_uri[image_uri]


def test_concurrent_resolutions_are_independent(make_resolver):
    from rubbish_classifier.images import prepare_image

    colors = {"red": "plastic bottle", "green": "banana peel", "blue": "tin can", "white": "newspaper"}
    images = {c: make_image_bytes("PNG", c) for c in colors}
    resolver = make_resolver(EchoLabeler({prepare_image(b): colors[c] for c, b in images.items()}))

    jobs = [c for c in colors for _ in range(25)]
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda c: (c, resolver.resolve(images[c])), jobs))

    expected = {"red": Category.PLASTIC, "green": Category.ORGANIC, "blue": Category.METAL, "white": Category.PAPER}
    assert len(results) == len(jobs)
    assert all(category == expected[color] for color, category in results)
