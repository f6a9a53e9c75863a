__version__ = "0.3.0"
__version_tuple__ = tuple(int(part) for part in __version__.split("."))
