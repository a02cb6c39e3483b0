"""Модули построения и валидации XML выгрузки ICI."""

from ici_export.modules.exporter import IciExporter
from ici_export.modules.repository import InMemoryRepository, MetadataRepository
from ici_export.modules.xml_builder import BuildOptions, IciXmlBuilder
from ici_export.modules.xml_validator import XMLValidator

__all__ = [
    "BuildOptions",
    "IciExporter",
    "IciXmlBuilder",
    "InMemoryRepository",
    "MetadataRepository",
    "XMLValidator",
]
