from hypothesis import given, strategies as st

from captimeline import vocab


def test_normalize_matches_case_insensitively_after_trimming() -> None:
    assert vocab.normalize("  extreme ", vocab.SEVERITIES, "Unknown") == "Extreme"
    assert vocab.normalize("cbrne", vocab.CATEGORIES, "Other") == "CBRNE"
    assert vocab.normalize_message_type("CANCEL") == "Cancel"


def test_normalize_falls_back_to_default() -> None:
    assert vocab.normalize_category("Weather") == "Other"
    assert vocab.normalize_urgency("") == "Unknown"
    assert vocab.normalize_status(None) == "Actual"
    assert vocab.normalize_certainty(3) == "Unknown"
    assert vocab.normalize_message_type("  ") == "Alert"


@given(
    value=st.one_of(st.none(), st.integers(), st.text(), st.sampled_from(vocab.SEVERITIES)),
)
def test_normalize_is_idempotent(value) -> None:
    once = vocab.normalize(value, vocab.SEVERITIES, vocab.DEFAULT_SEVERITY)
    assert vocab.normalize(once, vocab.SEVERITIES, vocab.DEFAULT_SEVERITY) == once
    assert once in vocab.SEVERITIES
