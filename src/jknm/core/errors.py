"""Exception taxonomy for the migration and indexing pipeline"""


class MigrationError(Exception):
    """Base class for all pipeline errors."""


class SourceDataError(MigrationError):
    """A single legacy record cannot be migrated. Recoverable at batch level."""

    def __init__(self, message: str, title: str | None = None, old_id: int | None = None):
        super().__init__(message)
        self.title = title
        self.old_id = old_id


class ConversionError(SourceDataError):
    """Legacy block data does not have the shape its block type requires."""


class UnknownCategoryError(SourceDataError):
    """A CSV row carries a category that is neither an article nor a known skip."""

    def __init__(self, row_id: str, category: str, title: str | None = None):
        old_id = int(row_id) if row_id.strip().isdigit() else None
        super().__init__(f"Unknown category {category!r} for CSV row {row_id}", title=title, old_id=old_id)
        self.row_id = row_id
        self.category = category


class RecordValidationError(MigrationError):
    """An assembled article payload or index record failed validation. Fatal."""


class SearchIndexError(MigrationError):
    """The search index service rejected a request or stayed unreachable."""
