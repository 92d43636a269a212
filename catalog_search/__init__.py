"""
Catalog search

Resolves free-text music catalog searches against a full-text index
(Elasticsearch or Manticore) and hydrates the ranked ids from the relational
catalog.
"""

from catalog_search.services.search_engine import CatalogSearchEngine

__version__ = "0.1.0"

__all__ = ["CatalogSearchEngine", "__version__"]
