"""Resolution of update records to uninstall methods.

Each non-driver update is run through an ordered chain of rules. The
first rule that reaches a decision wins:

1. KB number found in a DISM package identity -> DISM.
2. Build version minor fragment ('.<minor>.') found in a RollupFix
   name -> DISM. A build version with no matching name means the
   update was superseded by a later cumulative update, and the chain
   stops with the record not removable.
3. KB identifier present (and no build version) -> wusa.

Records no rule decides stay unresolved.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from wuctl.models.inventory import PackageInventoryEntry
from wuctl.models.update import UninstallMethod, UpdateCategory, UpdateRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatchContext:
    """Inventory the rules are evaluated against."""

    packages: Sequence[PackageInventoryEntry]
    secondary_names: Sequence[str]


@dataclass(frozen=True, slots=True)
class MatchDecision:
    """Decision reached by a resolution rule.

    Attributes:
        method: Uninstall method, NONE for a terminal "not removable".
        target: Identity for the executor (empty when method is NONE).
        reason: Short explanation used in the match log.
    """

    method: UninstallMethod
    target: str
    reason: str

    @property
    def removable(self) -> bool:
        """Check if the decision resolves the record to a method."""
        return self.method != UninstallMethod.NONE


ResolutionRule = Callable[[UpdateRecord, MatchContext], MatchDecision | None]


def version_fragment(build_version: str) -> str | None:
    """Build the RollupFix search pattern for a build version.

    The update history reports e.g. '26200.7623' while the servicing
    registry names the package '...~26100.7623.1.20', so only the minor
    part is comparable.

    Args:
        build_version: Dotted build version.

    Returns:
        Pattern such as '.7623.', or None without a minor part.
    """
    parts = build_version.split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    return f".{parts[1]}."


def find_secondary_name(build_version: str, secondary_names: Sequence[str]) -> str | None:
    """Find the first secondary name matching a build version fragment.

    Args:
        build_version: Dotted build version.
        secondary_names: Names to search, in order.

    Returns:
        The first matching name, or None.
    """
    pattern = version_fragment(build_version)
    if pattern is None:
        return None
    pattern = pattern.lower()
    return next((name for name in secondary_names if pattern in name.lower()), None)


def match_by_kb(record: UpdateRecord, context: MatchContext) -> MatchDecision | None:
    """Match the KB number against DISM package identities."""
    if not record.kb_id:
        return None

    kb_number = record.kb_number.lower()
    for package in context.packages:
        if kb_number in package.identity.lower():
            return MatchDecision(UninstallMethod.PACKAGE_MANAGER, package.identity, "DISM(KB)")
    return None


def match_by_version_fragment(record: UpdateRecord, context: MatchContext) -> MatchDecision | None:
    """Match the build version fragment against RollupFix names.

    A miss is terminal: the update is considered superseded.
    """
    if not record.build_version or version_fragment(record.build_version) is None:
        return None

    name = find_secondary_name(record.build_version, context.secondary_names)
    if name is not None:
        return MatchDecision(UninstallMethod.PACKAGE_MANAGER, name, "DISM")
    return MatchDecision(UninstallMethod.NONE, "", "not removable (superseded)")


def fallback_to_standalone(record: UpdateRecord, context: MatchContext) -> MatchDecision | None:
    """Fall back to wusa for records that only carry a KB identifier."""
    if not record.kb_id:
        return None
    return MatchDecision(UninstallMethod.STANDALONE_INSTALLER, record.kb_id, "WUSA")


# Evaluated in order; the first rule returning a decision wins.
RESOLUTION_RULES: tuple[ResolutionRule, ...] = (
    match_by_kb,
    match_by_version_fragment,
    fallback_to_standalone,
)


def resolve_record(
    record: UpdateRecord,
    context: MatchContext,
    rules: Sequence[ResolutionRule] = RESOLUTION_RULES,
) -> MatchDecision | None:
    """Resolve a single record in place.

    Args:
        record: Record to resolve; its previous resolution is discarded.
        context: Inventory to match against.
        rules: Rule chain, in priority order.

    Returns:
        The winning decision, or None when no rule applied.
    """
    record.clear_resolution()
    for rule in rules:
        decision = rule(record, context)
        if decision is None:
            continue
        if decision.removable:
            record.assign(decision.method, decision.target)
        else:
            record.mark_not_removable()
        return decision
    return None


def resolve(
    updates: Sequence[UpdateRecord],
    packages: Sequence[PackageInventoryEntry],
    secondary_names: Sequence[str],
) -> list[str]:
    """Resolve every non-driver update to an uninstall method.

    Driver updates are left untouched; see :mod:`wuctl.core.drivers`.

    Args:
        updates: Records to resolve, mutated in place.
        packages: DISM package inventory.
        secondary_names: RollupFix names from the servicing registry.

    Returns:
        One trace line per decision, e.g.
        'KB5034441(26100.3194) -> DISM(KB): Package_for_KB5034441~...'.
    """
    context = MatchContext(packages=packages, secondary_names=secondary_names)
    logs: list[str] = []

    for record in updates:
        if record.category == UpdateCategory.DRIVER:
            continue

        decision = resolve_record(record, context)
        if decision is None:
            continue

        if decision.removable:
            line = f"{record.label} -> {decision.reason}: {decision.target}"
        else:
            line = f"{record.label} -> {decision.reason}"
        logger.debug("Match: %s", line)
        logs.append(line)

    return logs
