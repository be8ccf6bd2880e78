"""Error taxonomy shared by the scraper services."""


class ScraperError(Exception):
    """Base class for failures surfaced to the CLI and API hosts."""

    def __init__(self, detail: str, status_code: int = 500) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class DirectoryFetchError(ScraperError):
    """Raised when the leaderboard listing could not be retrieved."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail, status_code=502)


class PageFetchError(ScraperError):
    """Raised when a single page of entries could not be retrieved or parsed."""

    def __init__(self, detail: str, cursor: str | None = None) -> None:
        super().__init__(detail, status_code=502)
        self.cursor = cursor


class CorruptHistogramStateError(ScraperError):
    """Raised when a persisted histogram cannot be parsed or fails validation."""

    def __init__(self, detail: str, path: str | None = None) -> None:
        super().__init__(detail, status_code=422)
        self.path = path


class LeaderboardNotFoundError(ScraperError):
    """Raised when a leaderboard name is not part of the directory."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Leaderboard {name!r} not found", status_code=404)
        self.name = name


class CheckpointWriteError(ScraperError):
    """Raised when a histogram checkpoint cannot be written or removed."""

    def __init__(self, detail: str, path: str | None = None) -> None:
        super().__init__(detail, status_code=500)
        self.path = path


class InvalidLeaderboardNameError(ScraperError, ValueError):
    """Raised when a leaderboard name cannot be mapped to a checkpoint file."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Leaderboard name {name!r} cannot be used as a file name", status_code=400)
        self.name = name
