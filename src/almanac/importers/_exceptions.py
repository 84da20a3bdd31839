from almanac.calendar._exceptions import AlmanacError


class ImportFormatError(AlmanacError):
    """Raised when a source export cannot be imported at all."""


class UnrecognizedFormatError(ImportFormatError):
    """Raised when no importer recognizes the export's top-level shape."""


class MissingFieldError(ImportFormatError):
    """Raised when a field the importer cannot default is entirely absent."""

    def __init__(self, path: str, importer_id: str = "") -> None:
        self.path = path
        self.importer_id = importer_id
        source = f"{importer_id} export" if importer_id else "export"
        super().__init__(f"{source} is missing required field {path!r}")
