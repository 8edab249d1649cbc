"""
app/mappers/column_mapper.py

Column mapping from detected CSV headers to an entity's canonical fields.

Matching runs in three passes over all fields: exact header equality, then
case-insensitive equality, then substring containment in either direction.
Each pass completes for every field before the next starts, so an exact
match is never lost to an earlier field's fuzzy match. A source column is
claimed by at most one automatically matched field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from app.domain.entities import EntityDefinition
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError

logger = logging.getLogger(__name__)

MATCH_EXACT = "exact"
MATCH_CASE_INSENSITIVE = "case_insensitive"
MATCH_FUZZY = "fuzzy"
MATCH_OVERRIDE = "override"
MATCH_SAVED_CONFIG = "saved_config"

EXPLICIT_STRATEGIES = frozenset({MATCH_OVERRIDE, MATCH_SAVED_CONFIG})

# Values that clear a mapping entry when supplied as an override.
UNMAPPED_VALUES = frozenset({"", "_none_"})

MIN_FUZZY_LENGTH = 3


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field -> source column (None when unmapped), plus how each
    entry was matched.
    """

    entity_type: str
    canonical_to_source: dict[str, str | None]
    source_headers: tuple[str, ...]
    match_strategies: dict[str, str]
    mapping_config_id: str | None = None

    def source_for(self, canonical_field: str) -> str | None:
        return self.canonical_to_source.get(canonical_field)

    @property
    def mapped(self) -> dict[str, str]:
        return {
            canonical: source
            for canonical, source in self.canonical_to_source.items()
            if source is not None
        }

    @property
    def unmapped_fields(self) -> tuple[str, ...]:
        return tuple(
            canonical
            for canonical, source in self.canonical_to_source.items()
            if source is None
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "mapping": dict(self.canonical_to_source),
            "strategies": dict(self.match_strategies),
            "mapping_config_id": self.mapping_config_id,
        }


class ColumnMapper:
    """
    Proposes and edits column mappings. Pure: no I/O, same input gives the
    same mapping.
    """

    def propose(self, column_names: Sequence[str], entity: EntityDefinition) -> ColumnMapping:
        """
        Propose a mapping for every canonical field of `entity`.
        """

        headers = [name for name in column_names if name and name.strip()]
        resolved: dict[str, str | None] = {name: None for name in entity.field_names}
        strategies: dict[str, str] = {}
        used_headers: set[str] = set()

        for field_spec in entity.fields:
            match = self._first_match(
                field_spec.match_candidates,
                headers,
                used_headers,
                lambda header, candidate: header == candidate,
            )
            if match is not None:
                resolved[field_spec.name] = match
                strategies[field_spec.name] = MATCH_EXACT
                used_headers.add(match)

        for field_spec in entity.fields:
            if resolved[field_spec.name] is not None:
                continue
            match = self._first_match(
                field_spec.match_candidates,
                headers,
                used_headers,
                lambda header, candidate: header.strip().lower() == candidate.strip().lower(),
            )
            if match is not None:
                resolved[field_spec.name] = match
                strategies[field_spec.name] = MATCH_CASE_INSENSITIVE
                used_headers.add(match)

        for field_spec in entity.fields:
            if resolved[field_spec.name] is not None:
                continue
            match = self._find_fuzzy_match(field_spec.match_candidates, headers, used_headers)
            if match is not None:
                resolved[field_spec.name] = match
                strategies[field_spec.name] = MATCH_FUZZY
                used_headers.add(match)

        logger.debug(
            "Proposed mapping entity=%s mapped=%s unmapped=%s",
            entity.name,
            sum(1 for value in resolved.values() if value is not None),
            sum(1 for value in resolved.values() if value is None),
        )
        return ColumnMapping(
            entity_type=entity.name,
            canonical_to_source=resolved,
            source_headers=tuple(column_names),
            match_strategies=strategies,
        )

    def apply_overrides(
        self,
        mapping: ColumnMapping,
        overrides: Mapping[str, str | None] | None,
        *,
        entity: EntityDefinition,
    ) -> ColumnMapping:
        """
        Return a new mapping with caller overrides applied.

        An override value of None, "" or "_none_" unmaps the field. Raises
        SchemaMappingError for unknown fields or columns not in the header.
        """

        updated, errors = self._apply(mapping, overrides or {}, entity=entity, strategy=MATCH_OVERRIDE)
        if errors:
            raise SchemaMappingError(message="Column mapping overrides are invalid.", errors=errors)
        return updated

    def resolve(
        self,
        column_names: Sequence[str],
        entity: EntityDefinition,
        *,
        overrides: Mapping[str, str | None] | None = None,
        mapping_config: Any | None = None,
        require_complete: bool = True,
    ) -> ColumnMapping:
        """
        Propose, layer the saved config then caller overrides, and validate.

        Raises SchemaMappingError when an override is invalid or, with
        `require_complete`, when a required field stays unmapped.
        """

        if not any(name and name.strip() for name in column_names):
            raise SchemaMappingError(
                message="CSV headers are empty; cannot resolve column mapping.",
                errors=[
                    MappingErrorDetail(
                        code="empty_headers",
                        message="No CSV headers were provided.",
                    )
                ],
            )

        mapping = self.propose(column_names, entity)
        errors: list[MappingErrorDetail] = []

        saved = self._saved_config_mapping(mapping_config)
        if saved:
            mapping, saved_errors = self._apply(mapping, saved, entity=entity, strategy=MATCH_SAVED_CONFIG)
            for error in saved_errors:
                logger.warning(
                    "Ignoring saved mapping entry field=%s column=%s reason=%s",
                    error.canonical_field,
                    error.source_column,
                    error.code,
                )
            config_id = getattr(mapping_config, "id", None)
            mapping = replace(mapping, mapping_config_id=str(config_id) if config_id is not None else None)

        if overrides:
            mapping, override_errors = self._apply(mapping, overrides, entity=entity, strategy=MATCH_OVERRIDE)
            errors.extend(override_errors)

        if require_complete:
            MappingValidator.for_entity(entity).validate(
                mapping=mapping.canonical_to_source,
                source_headers=[name for name in column_names if name],
                pre_errors=errors,
            )
        elif errors:
            raise SchemaMappingError(message="Column mapping overrides are invalid.", errors=errors)
        return mapping

    @staticmethod
    def map_row(*, raw_row: Mapping[str, str | None], mapping: ColumnMapping) -> dict[str, str | None]:
        """
        Project one header-keyed row onto canonical field names.
        """

        return {
            canonical_field: raw_row.get(source_column)
            for canonical_field, source_column in mapping.canonical_to_source.items()
            if source_column is not None
        }

    def _apply(
        self,
        mapping: ColumnMapping,
        overrides: Mapping[str, str | None],
        *,
        entity: EntityDefinition,
        strategy: str,
    ) -> tuple[ColumnMapping, list[MappingErrorDetail]]:
        resolved = dict(mapping.canonical_to_source)
        strategies = dict(mapping.match_strategies)
        errors: list[MappingErrorDetail] = []
        headers = [name for name in mapping.source_headers if name and name.strip()]

        for raw_field, raw_source in overrides.items():
            canonical_field = (raw_field or "").strip()
            if canonical_field not in resolved:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_override_field",
                        message=f"Override names a field that {entity.label.lower()} imports do not have.",
                        canonical_field=canonical_field,
                        source_column=raw_source,
                    )
                )
                continue

            if raw_source is None or raw_source.strip() in UNMAPPED_VALUES:
                resolved[canonical_field] = None
                strategies[canonical_field] = strategy
                continue

            matched_source = self._match_header(raw_source, headers)
            if matched_source is None:
                errors.append(
                    MappingErrorDetail(
                        code="override_source_not_found",
                        message="Override points to a source column not present in CSV headers.",
                        canonical_field=canonical_field,
                        source_column=raw_source,
                        context={"source_headers": headers},
                    )
                )
                continue

            for other_field, other_source in resolved.items():
                if (
                    other_field != canonical_field
                    and other_source == matched_source
                    and strategies.get(other_field) not in EXPLICIT_STRATEGIES
                ):
                    resolved[other_field] = None
                    strategies.pop(other_field, None)

            resolved[canonical_field] = matched_source
            strategies[canonical_field] = strategy

        return (
            replace(mapping, canonical_to_source=resolved, match_strategies=strategies),
            errors,
        )

    @staticmethod
    def _first_match(candidates, headers, used_headers, predicate) -> str | None:
        for candidate in candidates:
            for header in headers:
                if header in used_headers:
                    continue
                if predicate(header, candidate):
                    return header
        return None

    @staticmethod
    def _find_fuzzy_match(
        candidates: Sequence[str],
        headers: Sequence[str],
        used_headers: set[str],
    ) -> str | None:
        lowered_candidates = [candidate.strip().lower() for candidate in candidates if candidate.strip()]
        for header in headers:
            if header in used_headers:
                continue
            header_lower = header.strip().lower()
            for candidate in lowered_candidates:
                shorter = min(header_lower, candidate, key=len)
                if len(shorter) < MIN_FUZZY_LENGTH:
                    continue
                if candidate in header_lower or header_lower in candidate:
                    return header
        return None

    @staticmethod
    def _match_header(source: str, headers: Sequence[str]) -> str | None:
        wanted = source.strip()
        if wanted in headers:
            return wanted
        lowered = wanted.lower()
        for header in headers:
            if header.strip().lower() == lowered:
                return header
        return None

    @staticmethod
    def _saved_config_mapping(mapping_config: Any | None) -> dict[str, str | None]:
        if mapping_config is None:
            return {}
        raw = getattr(mapping_config, "field_mapping_json", None)
        if not isinstance(raw, dict):
            return {}
        return {
            key.strip(): value
            for key, value in raw.items()
            if isinstance(key, str) and key.strip() and (value is None or isinstance(value, str))
        }
