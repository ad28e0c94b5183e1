class BiletlinkError(Exception):
    pass


class InvalidEventData(BiletlinkError, ValueError):
    """Payload from the backend could not be turned into an EventDetail."""


class EventNotFound(BiletlinkError):
    def __init__(self, event_id: str) -> None:
        super().__init__(f"event not found: {event_id}")
        self.event_id = event_id


class EventApiError(BiletlinkError):
    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"api request failed status={status} url={url}")
        self.status = status
        self.url = url
