from generic_repository.database.context import DataContext


class CatalogContext(DataContext):
    """Data context for the catalog tables."""
