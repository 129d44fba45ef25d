"""Exception taxonomy shared by the services, tools and the HTTP layer."""
from typing import Optional


class FeedHubError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, details: Optional[str] = None):
        super().__init__(details or self.message)
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class UpstreamError(FeedHubError):
    """WordPress API unreachable, timed out or answered non-2xx."""
    message = "Failed to fetch WordPress posts"


class StoreError(FeedHubError):
    """MongoDB unreachable or a query failed."""
    message = "News store unavailable"


class ScrapeError(FeedHubError):
    message = "Scraping failed"


class ScrapeParseError(ScrapeError):
    """A single HTML fragment could not be turned into a news item."""
    message = "Failed to parse scraped element"


class ScrapeSourceError(ScrapeError):
    """A configured scrape source failed as a whole."""
    message = "Failed to scrape source"


class ValidationError(FeedHubError):
    status_code = 400
    message = "Missing required fields"


class DuplicateKeyError(FeedHubError):
    """Another document already owns this link."""
    status_code = 409
    message = "News item with this link already exists"


class ScrapeInProgressError(FeedHubError):
    status_code = 409
    message = "Scraping already in progress"
