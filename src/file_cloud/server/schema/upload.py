from pydantic.dataclasses import dataclass


@dataclass
class UploadResponse:
    url: str
