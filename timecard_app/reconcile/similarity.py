"""Edit-distance string similarity."""


def distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two strings.

    Insertions, deletions and substitutions each cost 1. Uses the full
    (len(b) + 1) x (len(a) + 1) dynamic-programming matrix.
    """
    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for j in range(len(a) + 1):
        matrix[0][j] = j
    for i in range(len(b) + 1):
        matrix[i][0] = i

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            cost = 0 if b[i - 1] == a[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,  # deletion
                matrix[i][j - 1] + 1,  # insertion
                matrix[i - 1][j - 1] + cost,  # substitution
            )

    return matrix[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1] derived from the edit distance.

    Raises:
        ValueError: If either string is empty.
    """
    if not a or not b:
        raise ValueError("similarity is undefined for empty strings")
    return 1 - distance(a, b) / max(len(a), len(b))
