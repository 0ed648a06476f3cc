"""Subject tokenising and wildcard matching."""

DELIMITER = "."
SINGLE_WILDCARD = "*"
FULL_WILDCARD = ">"


def tokenize(subject: str) -> list[str]:
    return subject.split(DELIMITER)


def match_subject(subject: str, pattern: str) -> bool:
    """Return True if ``subject`` is matched by ``pattern``.

    Wildcard rules:
    - ``*`` matches exactly one token at its position
    - ``>`` must be the last token and matches one or more trailing tokens
    """
    if subject == pattern:
        return True

    subject_tokens = tokenize(subject)
    pattern_tokens = tokenize(pattern)

    for index, token in enumerate(pattern_tokens):
        if token == FULL_WILDCARD:
            # only valid as the final token, and needs at least one more
            return index == len(pattern_tokens) - 1 and len(subject_tokens) > index
        if index >= len(subject_tokens):
            return False
        if token != SINGLE_WILDCARD and token != subject_tokens[index]:
            return False

    return len(subject_tokens) == len(pattern_tokens)
