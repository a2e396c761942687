"""XML reference export to BibTeX conversion toolkit."""

from .app import ReferenceConverterApp
from .config import ConversionOptions, ProviderSettings, load_options
from .models import ConversionResult, EntryDescriptor, FieldSet
from .enhancement import EnhancementPipeline
from .crossref import CrossrefProvider
from .semantic_scholar import SemanticScholarProvider
from .rate_limit import RateLimiter

__all__ = [
    "ReferenceConverterApp",
    "ConversionOptions",
    "ProviderSettings",
    "load_options",
    "ConversionResult",
    "EntryDescriptor",
    "FieldSet",
    "EnhancementPipeline",
    "CrossrefProvider",
    "SemanticScholarProvider",
    "RateLimiter",
]
