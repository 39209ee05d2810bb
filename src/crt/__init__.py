from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("crt-stroop-task")
except PackageNotFoundError:
    __version__ = "unknown"
