"""
Centralized enums for the Doclair tools service.

All option enums use ``str`` mixins so they serialize to their wire values.
"""

from enum import Enum


class OutputFormat(str, Enum):
    """Encoded output formats for image tools."""

    PNG = "png"
    JPG = "jpg"
    JPEG = "jpeg"
    WEBP = "webp"


class ProcessingTier(str, Enum):
    """Backend tier that produced a result."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    MOCK = "mock"


class CropMode(str, Enum):
    PRECISE = "precise"
    SMART = "smart"
    FACE_DETECT = "face-detect"


class ResizeMode(str, Enum):
    FIT = "fit"
    FILL = "fill"
    COVER = "cover"
    CONTAIN = "contain"
    STRETCH = "stretch"


class UpscaleAlgorithm(str, Enum):
    LANCZOS = "lanczos"
    CUBIC = "cubic"
    LINEAR = "linear"
    NEAREST = "nearest"


class CombineMode(str, Enum):
    NONE = "none"
    SIDE_BY_SIDE = "side-by-side"
    TOP_BOTTOM = "top-bottom"
    OVERLAY = "overlay"


class Alignment(str, Enum):
    START = "start"
    CENTER = "center"
    END = "end"


class RestoreMode(str, Enum):
    AUTO = "auto"
    VIBRANT = "vibrant"
    NATURAL = "natural"
    VINTAGE = "vintage"
    CUSTOM = "custom"


class UnblurAlgorithm(str, Enum):
    DECONVOLUTION = "deconvolution"
    NEURAL = "neural"
    ADAPTIVE = "adaptive"
    AUTO = "auto"


class EnhanceMode(str, Enum):
    AUTO = "auto"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    LOWLIGHT = "lowlight"
    VINTAGE = "vintage"
    VIVID = "vivid"


class ArtisticFilter(str, Enum):
    OIL = "oil"
    WATERCOLOR = "watercolor"
    SKETCH = "sketch"
    COMIC = "comic"
    POINTILLISM = "pointillism"
    IMPRESSIONIST = "impressionist"


class BorderStyle(str, Enum):
    NONE = "none"
    SIMPLE = "simple"
    ARTISTIC = "artistic"
    FRAME = "frame"


class BackgroundTexture(str, Enum):
    NONE = "none"
    CANVAS = "canvas"
    PAPER = "paper"
    ROUGH = "rough"


class BlurType(str, Enum):
    GAUSSIAN = "gaussian"
    MOTION = "motion"
    RADIAL = "radial"
    SURFACE = "surface"


class BWConversionMode(str, Enum):
    SIMPLE = "simple"
    CHANNEL_MIX = "channel-mix"
    TONAL = "tonal"
    FILM = "film"
    CUSTOM = "custom"


class FilmType(str, Enum):
    TRI_X = "tri-x"
    HP5 = "hp5"
    ACROS = "acros"
    T_MAX = "t-max"
    DELTA = "delta"
    STANDARD = "standard"


class Toning(str, Enum):
    NONE = "none"
    SEPIA = "sepia"
    SELENIUM = "selenium"
    CYANOTYPE = "cyanotype"
    PLATINUM = "platinum"


class VintageStyle(str, Enum):
    CLASSIC = "classic"
    SEPIA = "sepia"
    NOIR = "noir"
    FADED = "faded"
    TECHNICOLOR = "technicolor"
    POLAROID = "polaroid"
    CINEMATIC = "cinematic"
    RETRO = "retro"
    CUSTOM = "custom"


class LightLeakType(str, Enum):
    NONE = "none"
    SOFT = "soft"
    HARSH = "harsh"
    RANDOM = "random"


class VintageBorder(str, Enum):
    NONE = "none"
    WHITE = "white"
    BLACK = "black"
    FILM = "film"
    POLAROID = "polaroid"


class HdrStyle(str, Enum):
    NATURAL = "natural"
    DRAMATIC = "dramatic"
    CINEMATIC = "cinematic"
    SURREAL = "surreal"
    VIVID = "vivid"
    MOODY = "moody"
    LANDSCAPE = "landscape"
    CUSTOM = "custom"


class ToneMapping(str, Enum):
    REINHARD = "reinhard"
    FILMIC = "filmic"
    ACES = "aces"
    UNCHARTED2 = "uncharted2"


# Document conversion settings
class DocumentQuality(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    SMALL = "small"


class PageOrientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    AUTO = "auto"


class PageSize(str, Enum):
    A4 = "A4"
    LETTER = "Letter"
    LEGAL = "Legal"
    A3 = "A3"
    A5 = "A5"
    CUSTOM = "custom"


class MarginPreset(str, Enum):
    NORMAL = "normal"
    NARROW = "narrow"
    WIDE = "wide"
    CUSTOM = "custom"


class ConversionMethod(str, Enum):
    LIBREOFFICE = "libreoffice"
    FALLBACK = "fallback"
