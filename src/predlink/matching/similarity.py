"""String similarity scoring for normalized team names."""

WORD_MATCH_THRESHOLD = 0.8
DEFAULT_WORD_MATCH_BONUS = 0.15
WORD_WEIGHT = 0.6
FULL_STRING_WEIGHT = 0.4


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance (insert, delete, substitute) between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current
    return previous[-1]


def full_string_similarity(a: str, b: str) -> float:
    """1 - distance / longer length."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len


def _word_blend(
    words_a: list[str], words_b: list[str], full_sim: float, bonus_weight: float
) -> float:
    """Blend per-token best matches of `words_a` against `words_b`.

    Rewards shared identity tokens ("al ittihad") while the full-string
    term keeps a materially different qualifier ("jeddah" vs "club") from
    being ignored.
    """
    bests: list[float] = []
    for word_a in words_a:
        best = 0.0
        for word_b in words_b:
            if word_a == word_b:
                best = 1.0
                break
            best = max(best, full_string_similarity(word_a, word_b))
        bests.append(best)

    base = sum(bests) / len(bests)
    match_ratio = sum(1 for best in bests if best >= WORD_MATCH_THRESHOLD) / len(bests)
    score = WORD_WEIGHT * base + FULL_STRING_WEIGHT * full_sim + match_ratio * bonus_weight
    return min(1.0, score)


def calculate_similarity(
    a: str, b: str, bonus_weight: float = DEFAULT_WORD_MATCH_BONUS
) -> float:
    """Similarity in [0, 1] between two normalized names.

    Multi-word names on both sides use the word-based blend, computed in
    both directions and averaged so the score is symmetric. Anything else
    falls back to the plain full-string similarity.

    Args:
        a: First normalized name.
        b: Second normalized name.
        bonus_weight: Maximum bonus when every token has a close match.

    Returns:
        Similarity score; 0 if either side is empty, 1 if equal.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    words_a = a.split()
    words_b = b.split()
    full_sim = full_string_similarity(a, b)

    if len(words_a) >= 2 and len(words_b) >= 2:
        forward = _word_blend(words_a, words_b, full_sim, bonus_weight)
        backward = _word_blend(words_b, words_a, full_sim, bonus_weight)
        return (forward + backward) / 2

    return full_sim


def partial_match(a: str, b: str) -> float:
    """Containment score: shorter/longer length if one contains the other."""
    if not a or not b:
        return 0.0
    s1 = a.lower()
    s2 = b.lower()
    if s1 in s2 or s2 in s1:
        return min(len(s1), len(s2)) / max(len(s1), len(s2))
    return 0.0
