"""
app/validators/mapping_validator.py

Validation for column mappings before any row is imported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.domain.entities import EntityDefinition


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    Structured mapping error detail.
    """

    code: str
    message: str
    canonical_field: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "canonical_field": self.canonical_field,
            "source_column": self.source_column,
            "context": self.context,
        }


class SchemaMappingError(ValueError):
    """
    Raised when the column mapping cannot drive an import. Aborts the batch.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    @property
    def missing_required(self) -> tuple[str, ...]:
        return tuple(
            error.canonical_field
            for error in self.errors
            if error.code == "required_field_unmapped" and error.canonical_field
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [error.to_dict() for error in self.errors],
        }


class MappingValidator:
    """
    Validates a canonical-field -> source-column mapping for one entity type.
    """

    def __init__(
        self,
        *,
        required_fields: Sequence[str],
        canonical_fields: Sequence[str],
    ) -> None:
        self._required_fields = tuple(required_fields)
        self._canonical_set = set(canonical_fields)

    @classmethod
    def for_entity(cls, entity: EntityDefinition) -> MappingValidator:
        return cls(required_fields=entity.required_fields, canonical_fields=entity.field_names)

    def collect_errors(
        self,
        *,
        mapping: Mapping[str, str | None],
        source_headers: Sequence[str],
    ) -> list[MappingErrorDetail]:
        errors: list[MappingErrorDetail] = []
        headers_set = set(source_headers)

        for canonical_field, source_column in mapping.items():
            if canonical_field not in self._canonical_set:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_canonical_field",
                        message="Unknown canonical field in mapping.",
                        canonical_field=canonical_field,
                        source_column=source_column,
                    )
                )
            if source_column is not None and source_column not in headers_set:
                errors.append(
                    MappingErrorDetail(
                        code="unknown_source_column",
                        message="Mapped source column does not exist in CSV headers.",
                        canonical_field=canonical_field,
                        source_column=source_column,
                    )
                )

        for required in self._required_fields:
            if mapping.get(required) is None:
                errors.append(
                    MappingErrorDetail(
                        code="required_field_unmapped",
                        message="Required canonical field is not mapped.",
                        canonical_field=required,
                        context={"source_headers": list(source_headers)},
                    )
                )
        return errors

    def validate(
        self,
        *,
        mapping: Mapping[str, str | None],
        source_headers: Sequence[str],
        pre_errors: Sequence[MappingErrorDetail] | None = None,
    ) -> None:
        """
        Raise SchemaMappingError when the mapping has any problem.
        """

        errors: list[MappingErrorDetail] = list(pre_errors or [])
        errors.extend(self.collect_errors(mapping=mapping, source_headers=source_headers))
        if not errors:
            return

        missing_required = sorted(
            {
                error.canonical_field
                for error in errors
                if error.code == "required_field_unmapped" and error.canonical_field
            }
        )
        if missing_required:
            message = (
                "Column mapping is incomplete. Missing required fields: "
                f"{', '.join(missing_required)}."
            )
        else:
            message = "Column mapping is invalid."
        raise SchemaMappingError(message=message, errors=errors)
