from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.export import (
    ExportRequest,
    ExportResult,
    GenericsExportRequest,
    export_declaration,
    export_generics,
    export_request,
    exported_types,
)
from kustom_export._exporter.mapping import TypeMappingTable, build_mapping_table

__all__ = [
    "ExportContext",
    "ExportRequest",
    "ExportResult",
    "GenericsExportRequest",
    "TypeMappingTable",
    "build_mapping_table",
    "export_declaration",
    "export_generics",
    "export_request",
    "exported_types",
]
