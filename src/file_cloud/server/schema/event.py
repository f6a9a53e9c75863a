from pydantic.dataclasses import dataclass

# https://plausible.io/docs/events-api


@dataclass
class PlausibleEvent:
    name: str
    domain: str
    url: str
