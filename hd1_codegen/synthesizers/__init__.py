"""Foreign schema synthesizers: TypeScript declarations and component libraries."""

from .categories import CategoryClassifier, CategoryRule, KeywordCategoryClassifier
from .components import ComponentCapabilityExtractor, ExtractionWarning, capabilities_manifest
from .typedefs import TypeDefinitionScanner, normalize_discriminator, parse_declarations

__all__ = [
    "CategoryClassifier",
    "CategoryRule",
    "KeywordCategoryClassifier",
    "ComponentCapabilityExtractor",
    "ExtractionWarning",
    "capabilities_manifest",
    "TypeDefinitionScanner",
    "normalize_discriminator",
    "parse_declarations",
]
