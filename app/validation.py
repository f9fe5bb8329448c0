"""Question validation."""

MIN_QUESTION_LENGTH = 10
MAX_QUESTION_LENGTH = 1000


def validate(question: str) -> dict[str, str]:
    """Return field errors for ``question``; an empty dict means it is valid."""

    text = question.strip()
    if not text:
        return {"question": "Please enter a medical question"}
    if len(text) < MIN_QUESTION_LENGTH:
        return {"question": f"Question must be at least {MIN_QUESTION_LENGTH} characters long"}
    if len(text) > MAX_QUESTION_LENGTH:
        return {"question": f"Question must be less than {MAX_QUESTION_LENGTH} characters"}
    return {}
