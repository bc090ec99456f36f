"""Domain models for the CSV import engine.

This package contains the domain model classes shared by the matcher,
mapping manager, validator, template store and import session.
"""

from .column_mapping import ColumnMapping, MatchProposal, Transformation, TransformationKind
from .field_catalog import FieldCatalog
from .import_summary import ImportSummary
from .mapping_template import MappingTemplate
from .upload_step import UploadStep
from .validation_error import ValidationError, ValidationResult

__all__ = [
    # Catalog / mapping models
    "FieldCatalog",
    "ColumnMapping",
    "MatchProposal",
    "Transformation",
    "TransformationKind",
    "MappingTemplate",
    # Workflow models
    "UploadStep",
    "ValidationError",
    "ValidationResult",
    "ImportSummary",
]
