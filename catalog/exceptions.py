class CatalogError(Exception):
    """Base class for product media and gallery failures."""


class UnsupportedMediaError(CatalogError):
    pass


class DecodeError(CatalogError):
    pass


class StoreError(CatalogError):
    pass


class IndexOutOfRangeError(CatalogError, IndexError):
    pass


class PersistenceError(CatalogError):
    pass


class ProductNotFound(PersistenceError):
    pass
