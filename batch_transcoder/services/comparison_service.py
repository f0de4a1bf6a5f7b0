"""
Reconciles source descriptors with target (encoded) descriptors.

Pairs are formed by `VideoDescriptor.file_name` alone, the base name without
extension. Two sources with the same base name in different folders will both
be paired with the first target of that name; `metadata_service` warns when a
scan contains such duplicates.

Output order is part of the contract: records for every source in source-scan
order first, then the targets no source claimed, in target-scan order.
"""
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..domain.media import VideoDescriptor
from ..domain.models import ComparisonRecord


def bitrate_reduction_percent(
    source_total_bit_rate: Optional[int], target_total_bit_rate: Optional[int]
) -> Optional[float]:
    """
    Relative change of the total bit rate from source to target, in percent.

    A negative value means the target is smaller: 10 Mb/s -> 7.5 Mb/s gives -25.0.

    A source rate of zero cannot be divided by; the result is then the target
    rate multiplied by 100 (0 -> 500 gives 50000.0), which keeps existing
    reports comparable. If either rate is unknown the result is None.
    """
    if source_total_bit_rate is None or target_total_bit_rate is None:
        return None
    if source_total_bit_rate == 0:
        return float(target_total_bit_rate * 100)
    return (target_total_bit_rate - source_total_bit_rate) / source_total_bit_rate * 100


def merge(
    sources: Sequence[VideoDescriptor], targets: Sequence[VideoDescriptor]
) -> List[ComparisonRecord]:
    """
    Builds the comparison records for one round.

    Args:
        sources: Descriptors of the source files, in scan order.
        targets: Descriptors of the encoded files, in scan order.

    Returns:
        One record per source (matched or source-only), followed by one
        target-only record per unclaimed target.
    """
    first_target_by_name: Dict[str, VideoDescriptor] = {}
    for target in targets:
        first_target_by_name.setdefault(target.file_name, target)

    claimed_names = set()
    records: List[ComparisonRecord] = []

    for source in sources:
        target = first_target_by_name.get(source.file_name)
        if target is None:
            logger.debug(f"No encoded counterpart for '{source.file_name}'.")
            records.append(ComparisonRecord(source=source))
            continue
        claimed_names.add(source.file_name)
        records.append(
            ComparisonRecord(
                source=source,
                target=target,
                bitrate_reduction_percent=bitrate_reduction_percent(
                    source.total_bit_rate_raw, target.total_bit_rate_raw
                ),
            )
        )

    for target in targets:
        if target.file_name not in claimed_names:
            records.append(ComparisonRecord(target=target))

    matched = sum(1 for r in records if r.is_matched)
    logger.info(
        f"Reconciled {len(sources)} source(s) with {len(targets)} target(s): "
        f"{matched} matched, {len(records) - matched} unmatched."
    )
    return records
