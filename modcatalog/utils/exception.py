class InvalidModId(Exception):
    """
    Raised when an integer does not fall in any of the
    reserved or regular mod ID ranges
    """

    pass


class DuplicateCatalogEntry(Exception):
    """
    Raised when trying to add a mod, author or group
    that is already registered in the catalog
    """

    pass


class SnapshotLoadError(Exception):
    pass


class DownloadError(Exception):
    pass
