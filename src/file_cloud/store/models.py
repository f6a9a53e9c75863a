from pydantic.dataclasses import dataclass

IMAGE_TYPE = "image"


@dataclass(frozen=True)
class ObjectMetadata:
    content_type: str


@dataclass(frozen=True)
class StoredObject:
    key: str
    content_type: str

    @property
    def is_image(self) -> bool:
        return is_image(self.content_type)


@dataclass(frozen=True)
class ResolvedFile:
    original_name: str
    url: str
    is_image: bool


def is_image(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split("/", 1)[0].strip().lower() == IMAGE_TYPE
