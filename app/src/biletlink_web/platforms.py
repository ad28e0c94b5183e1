from dataclasses import dataclass
from enum import Enum


class Platform(Enum):
    BILETIX = "Biletix"
    BUBILET = "Bubilet"
    OTHER = "Other"

    @classmethod
    def from_name(cls, name: str | None) -> "Platform":
        key = (name or "").strip().lower()
        for platform in cls:
            if platform is not cls.OTHER and platform.value.lower() == key:
                return platform
        return cls.OTHER


@dataclass(frozen=True)
class PlatformStyle:
    bg: str
    border: str
    text: str


_STYLES: dict[Platform, PlatformStyle] = {
    Platform.BILETIX: PlatformStyle(bg="bg-orange-50", border="border-orange-400", text="text-orange-600"),
    Platform.BUBILET: PlatformStyle(bg="bg-purple-50", border="border-purple-400", text="text-purple-600"),
    Platform.OTHER: PlatformStyle(bg="bg-gray-50", border="border-gray-400", text="text-gray-600"),
}


def platform_style(platform: Platform | str | None) -> PlatformStyle:
    if not isinstance(platform, Platform):
        platform = Platform.from_name(platform)
    return _STYLES[platform]
