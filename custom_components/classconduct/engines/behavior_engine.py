"""Behavior Engine - Catalog rules and score recomputation.

This engine provides stateless, pure Python functions for:
- Resolving the point value of an occurrence (catalog → stored → annotation)
- Recomputing and clamping a record's score
- Rank lookup from weekly thresholds
- Catalog add/edit/delete with label migration across the whole ledger
- Parsing and stripping the historical "(+5đ)" / "(x2)" label suffixes

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data. Settings are
always passed explicitly. Callers hand in copies; the catalog functions return
new structures and never write anywhere.
"""

from __future__ import annotations

import copy
import re
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import build_behavior, normalize_occurrence
from ..utils.math_utils import clamp

if TYPE_CHECKING:
    from ..type_defs import BehaviorItem, ConductRecord, Occurrence, SettingsData

_ANNOTATION_RE = re.compile(const.POINT_ANNOTATION_PATTERN)
_MULTIPLICITY_RE = re.compile(const.MULTIPLICITY_PATTERN)

# Record field holding occurrences of each catalog sub-list
RECORD_FIELD_BY_SUB_LIST: dict[str, str] = {
    const.BEHAVIOR_CONFIG_VIOLATIONS: const.DATA_RECORD_VIOLATIONS,
    const.BEHAVIOR_CONFIG_POSITIVES: const.DATA_RECORD_POSITIVE_BEHAVIORS,
}


class BehaviorEngine:
    """Pure logic engine for the behavior catalog and score rules.

    All methods are static - no instance state.
    """

    # =========================================================================
    # Label helpers
    # =========================================================================

    @staticmethod
    def parse_point_annotation(label: str) -> int | None:
        """Return N from a "<label> (±Nđ)" suffix, or None when absent."""
        match = _ANNOTATION_RE.search(label)
        if match is None:
            return None
        return int(match.group(1))

    @staticmethod
    def strip_annotations(label: str) -> str:
        """Remove every "(±Nđ)" and "(xN)" suffix and surrounding whitespace.

        Examples:
            strip_annotations("Talking (-2đ) (x2)") → "Talking"
            strip_annotations("Helping") → "Helping"
        """
        return _MULTIPLICITY_RE.sub("", _ANNOTATION_RE.sub("", label)).strip()

    @staticmethod
    def format_label_with_points(label: str, points: int) -> str:
        """Return "<label> (+Nđ)" / "<label> (-Nđ)"."""
        sign = "+" if points >= 0 else "-"
        return const.POINT_ANNOTATION_FMT.format(
            label=label, sign=sign, points=abs(points)
        )

    # =========================================================================
    # Catalog lookups
    # =========================================================================

    @staticmethod
    def sub_list_key(is_positive: bool) -> str:
        """Return the behavior_config key for the given sign."""
        return (
            const.BEHAVIOR_CONFIG_POSITIVES
            if is_positive
            else const.BEHAVIOR_CONFIG_VIOLATIONS
        )

    @staticmethod
    def catalog(settings: SettingsData, is_positive: bool) -> list[BehaviorItem]:
        """Return one catalog sub-list."""
        return settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG][
            BehaviorEngine.sub_list_key(is_positive)
        ]

    @staticmethod
    def find_behavior(
        items: list[BehaviorItem], label: str, *, case_sensitive: bool = True
    ) -> BehaviorItem | None:
        """Return the catalog item whose label matches exactly."""
        if case_sensitive:
            return next(
                (item for item in items if item[const.DATA_BEHAVIOR_LABEL] == label),
                None,
            )
        wanted = label.strip().lower()
        return next(
            (
                item
                for item in items
                if item[const.DATA_BEHAVIOR_LABEL].strip().lower() == wanted
            ),
            None,
        )

    @staticmethod
    def locate_behavior(
        settings: SettingsData, behavior_id: str
    ) -> tuple[str, int] | None:
        """Return (sub_list_key, index) of a catalog item by id."""
        config = settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG]
        for sub_list in (
            const.BEHAVIOR_CONFIG_VIOLATIONS,
            const.BEHAVIOR_CONFIG_POSITIVES,
        ):
            for index, item in enumerate(config[sub_list]):
                if item[const.DATA_BEHAVIOR_ID] == behavior_id:
                    return sub_list, index
        return None

    # =========================================================================
    # Score rules
    # =========================================================================

    @staticmethod
    def occurrence_points(
        occurrence: Occurrence | str, items: list[BehaviorItem]
    ) -> int:
        """Resolve the point value of one occurrence.

        Order: exact label in the current catalog sub-list, the points stored
        when it was applied, the "(±Nđ)" annotation in the label, else 0.
        """
        normalized = normalize_occurrence(occurrence)
        label = normalized[const.DATA_OCCURRENCE_LABEL]

        item = BehaviorEngine.find_behavior(items, label)
        if item is not None:
            return int(item[const.DATA_BEHAVIOR_POINTS])

        stored = normalized[const.DATA_OCCURRENCE_POINTS]
        if stored is not None:
            return stored

        annotated = BehaviorEngine.parse_point_annotation(label)
        if annotated is not None:
            return annotated

        const.LOGGER.debug("DEBUG: Orphaned behavior label '%s' counts as 0", label)
        return 0

    @staticmethod
    def recompute_score(record: ConductRecord, settings: SettingsData) -> int:
        """Return clamp(default + Σ violations + Σ positives, 0, 100)."""
        total = int(settings[const.DATA_SETTINGS_DEFAULT_SCORE])
        for sub_list, field in RECORD_FIELD_BY_SUB_LIST.items():
            items = settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG][sub_list]
            for occurrence in record.get(field, []):
                total += BehaviorEngine.occurrence_points(occurrence, items)
        return clamp(total, const.MIN_SCORE, const.MAX_SCORE)

    @staticmethod
    def recalculate_all(
        records: dict[str, ConductRecord], settings: SettingsData
    ) -> int:
        """Recompute every record in place. Returns how many scores changed."""
        changed = 0
        for record in records.values():
            score = BehaviorEngine.recompute_score(record, settings)
            if score != record[const.DATA_RECORD_SCORE]:
                record[const.DATA_RECORD_SCORE] = score
                changed += 1
        return changed

    @staticmethod
    def rank_for_score(score: float, thresholds: dict[str, int]) -> str:
        """Return GOOD/FAIR/PASS/FAIL for a score against rank thresholds."""
        if score >= thresholds[const.THRESHOLD_GOOD]:
            return const.RANK_GOOD
        if score >= thresholds[const.THRESHOLD_FAIR]:
            return const.RANK_FAIR
        if score >= thresholds[const.THRESHOLD_PASS]:
            return const.RANK_PASS
        return const.RANK_FAIL

    # =========================================================================
    # Catalog mutations (return new structures)
    # =========================================================================

    @staticmethod
    def add_behavior(
        settings: SettingsData, user_input: dict[str, Any], is_positive: bool
    ) -> tuple[SettingsData, BehaviorItem]:
        """Return (new_settings, item) with the behavior appended.

        Raises:
            EntityValidationError: blank or duplicate label, bad points/category
        """
        new_settings = copy.deepcopy(settings)
        items = BehaviorEngine.catalog(new_settings, is_positive)
        item = build_behavior(user_input, existing_items=items, is_positive=is_positive)
        items.append(item)
        return new_settings, item

    @staticmethod
    def migrate_label(
        records: dict[str, ConductRecord],
        record_field: str,
        old_label: str,
        new_label: str,
        points: int,
    ) -> int:
        """Rewrite exact-match occurrences in place with the new label and points.

        Returns the number of occurrences rewritten.
        """
        rewritten = 0
        for record in records.values():
            for occurrence in record.get(record_field, []):
                if occurrence[const.DATA_OCCURRENCE_LABEL] == old_label:
                    occurrence[const.DATA_OCCURRENCE_LABEL] = new_label
                    occurrence[const.DATA_OCCURRENCE_POINTS] = points
                    rewritten += 1
        return rewritten

    @staticmethod
    def edit_behavior(
        settings: SettingsData,
        records: dict[str, ConductRecord],
        behavior_id: str,
        user_input: dict[str, Any],
    ) -> tuple[SettingsData, dict[str, ConductRecord], BehaviorItem, int] | None:
        """Update a catalog item, migrate its occurrences and recompute every score.

        Occurrences of the old label take the new label and the new points, so
        a later delete falls back to the edited value. Works on copies; nothing
        is returned half-applied. Returns None when the id is unknown, else
        (new_settings, new_records, new_item, renamed_count).

        Raises:
            EntityValidationError: invalid new values (nothing is computed)
        """
        location = BehaviorEngine.locate_behavior(settings, behavior_id)
        if location is None:
            return None
        sub_list, index = location
        is_positive = sub_list == const.BEHAVIOR_CONFIG_POSITIVES

        new_settings = copy.deepcopy(settings)
        items = new_settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG][sub_list]
        old_item = items[index]
        new_item = build_behavior(
            user_input,
            existing=old_item,
            existing_items=items,
            is_positive=is_positive,
        )
        items[index] = new_item

        new_records = copy.deepcopy(records)
        old_label = old_item[const.DATA_BEHAVIOR_LABEL]
        new_label = new_item[const.DATA_BEHAVIOR_LABEL]
        rewritten = BehaviorEngine.migrate_label(
            new_records,
            RECORD_FIELD_BY_SUB_LIST[sub_list],
            old_label,
            new_label,
            int(new_item[const.DATA_BEHAVIOR_POINTS]),
        )
        renamed = rewritten if old_label != new_label else 0
        BehaviorEngine.recalculate_all(new_records, new_settings)
        return new_settings, new_records, new_item, renamed

    @staticmethod
    def delete_behavior(
        settings: SettingsData, behavior_id: str
    ) -> tuple[SettingsData, BehaviorItem] | None:
        """Return (new_settings, removed_item), or None when the id is unknown.

        Historic occurrences keep their label and fall back to their stored
        or annotated points.
        """
        location = BehaviorEngine.locate_behavior(settings, behavior_id)
        if location is None:
            return None
        sub_list, index = location
        new_settings = copy.deepcopy(settings)
        removed = new_settings[const.DATA_SETTINGS_BEHAVIOR_CONFIG][sub_list].pop(index)
        return new_settings, removed
