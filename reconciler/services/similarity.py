"""String similarity helpers for description matching."""


def levenshtein_distance(first: str, second: str) -> int:
    """Return the unit-cost edit distance between two strings."""
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    # Keep the shorter string on the inner loop so the row stays small.
    if len(first) < len(second):
        first, second = second, first

    previous = list(range(len(second) + 1))
    for i, char_a in enumerate(first, start=1):
        current = [i]
        for j, char_b in enumerate(second, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(
                    min(
                        previous[j - 1] + 1,  # substitution
                        current[j - 1] + 1,  # insertion
                        previous[j] + 1,  # deletion
                    )
                )
        previous = current
    return previous[-1]


def string_similarity(first: str | None, second: str | None) -> float:
    """Normalized edit-distance similarity in [0, 1].

    Missing values compare as empty strings, and two empty strings are
    identical (similarity 1.0).
    """
    first = first or ""
    second = second or ""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(first, second)) / longest
