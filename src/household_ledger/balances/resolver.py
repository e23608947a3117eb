"""Per-member impact resolution for a single transaction's splits."""

from collections.abc import Iterable, Mapping, Sequence

from ..models import MemberImpact, TransactionSplit
from ..money import is_effectively_zero

# transaction_id -> splits of that transaction (read-only for the engine)
SplitsIndex = Mapping[str, Sequence[TransactionSplit]]


def build_splits_index(
    splits: Iterable[TransactionSplit],
) -> dict[str, list[TransactionSplit]]:
    """
    Group a flat list of splits by transaction ID.

    Args:
        splits: Splits for every transaction of a household

    Returns:
        Mapping of transaction ID to that transaction's splits
    """
    index: dict[str, list[TransactionSplit]] = {}
    for split in splits:
        index.setdefault(split.transaction_id, []).append(split)
    return index


def rank_impacts(impacts: Iterable[MemberImpact]) -> list[MemberImpact]:
    """
    Drop effectively-zero entries and order by descending ``|net|``.

    ``sorted`` is stable, so members with equal magnitudes keep their
    input order.
    """
    significant = [impact for impact in impacts if not is_effectively_zero(impact.net)]
    return sorted(significant, key=lambda impact: abs(impact.net), reverse=True)


def per_member_impacts(splits: Iterable[TransactionSplit]) -> list[MemberImpact]:
    """
    Compute each member's net impact (paid - owed) for one transaction.

    Args:
        splits: The transaction's splits

    Returns:
        Non-zero impacts, largest magnitude first
    """
    return rank_impacts(
        MemberImpact(member_id=split.member_id, net=split.net) for split in splits
    )
