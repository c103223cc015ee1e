"""Sentiment scale shared by records, payloads and exports."""

SENTIMENT_LABELS: dict[int, str] = {
    1: "very bad",
    2: "bad",
    3: "neutral",
    4: "good",
    5: "very good",
}

UNKNOWN_LABEL = "unknown"

MIN_SENTIMENT = 1
MAX_SENTIMENT = 5


def sentiment_label(value: int | None) -> str:
    """Resolve a 1-5 sentiment value to its label."""
    if value is None:
        return UNKNOWN_LABEL
    return SENTIMENT_LABELS.get(value, UNKNOWN_LABEL)


def validate_sentiment(value: int) -> int:
    """Ensure a sentiment value is an integer in 1..5."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"sentiment must be an integer, got {value!r}")
    if value < MIN_SENTIMENT or value > MAX_SENTIMENT:
        raise ValueError(
            f"sentiment must be between {MIN_SENTIMENT} and {MAX_SENTIMENT}, got {value}"
        )
    return value
