import importlib.metadata

try:
    __version__ = importlib.metadata.version("nextrows")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"
