class PoiEditorError(Exception):
    """Base class for errors raised by poi_editor."""


class ParseError(PoiEditorError):
    """Import payload is not JSON or not a FeatureCollection."""


class ReadFailure(PoiEditorError):
    """An import file could not be read at all."""


class InvalidCoordinatesError(PoiEditorError, ValueError):
    pass


class InvalidAttributesError(PoiEditorError, ValueError):
    """`name` or `category` supplied with a non-string value."""


class StorageWriteError(PoiEditorError):
    """Persisting the snapshot failed; the in-memory change is kept."""


class SurfaceNotInitializedError(PoiEditorError, RuntimeError):
    pass


class FormValidationError(PoiEditorError, ValueError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
