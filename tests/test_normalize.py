import pytest

from fieldsync.fields.normalize import (
    TextNormalizer,
    TextOptions,
    key_variants,
    strip_accents,
    strip_accents_with_mapping,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Title", "title"),
        ("ÉTÉ", "ete"),
        ("Straße", "strasse"),
        ("déjà vu", "deja vu"),
        ("plain", "plain"),
        ("", ""),
    ],
)
def test_default_profile_folds_case_and_accents(raw: str, expected: str) -> None:
    assert TextNormalizer().normalize(raw) == expected


@pytest.mark.parametrize("raw", ["Été", "ÀÉÎÕÜ", "MiXeD Case", "naïve café", "ß"])
def test_normalization_is_idempotent(raw: str) -> None:
    normalizer = TextNormalizer()
    once = normalizer.normalize(raw)
    assert normalizer.normalize(once) == once


def test_profile_switches_are_independent() -> None:
    assert TextNormalizer(TextOptions(lower_case=False, ignore_accents=True)).normalize("Été") == "Ete"
    assert TextNormalizer(TextOptions(lower_case=True, ignore_accents=False)).normalize("Été") == "été"
    assert TextNormalizer(TextOptions(lower_case=False, ignore_accents=False)).normalize("Été") == "Été"


def test_normalizer_is_callable() -> None:
    normalizer = TextNormalizer()
    assert normalizer("ÉTÉ") == normalizer.normalize("ÉTÉ")


def test_strip_accents_keeps_base_letters() -> None:
    assert strip_accents("épreuve") == "epreuve"
    assert strip_accents("Ça va") == "Ca va"


def test_mapping_points_back_to_source_offsets() -> None:
    stripped, mapping = strip_accents_with_mapping("Épreuve", lower_case=True)
    assert stripped == "epreuve"
    assert mapping == list(range(7))


def test_mapping_handles_expanding_case_folds() -> None:
    stripped, mapping = strip_accents_with_mapping("aß", lower_case=True)
    assert stripped == "ass"
    assert mapping == [0, 1, 1]


def test_key_variants_cover_sanitized_spellings() -> None:
    assert key_variants("my key (x)") == ("my key (x)", "my-key-(x)", "my key x")
    assert key_variants("plain") == ("plain",)
