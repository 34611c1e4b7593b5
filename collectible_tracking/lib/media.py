"""
Media classification for collectible records.

Validity and materialization both classify through ``classify_media``, so a
record that passes validity always has a media type when it is converted.
All functions here are total over arbitrary record shapes.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .models import MediaType


GIF_EXTENSIONS = (".gif",)
VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".ogv", ".ogg")
THREE_D_EXTENSIONS = (".glb", ".gltf")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".svg", ".webp", ".bmp", ".avif")

# (image url, animation url, animation mime type)
MediaSources = Tuple[Optional[str], Optional[str], str]


def _extension(url: Optional[str]) -> str:
    if not url:
        return ""
    path = urlparse(url).path.lower()
    dot = path.rfind(".")
    return path[dot:] if dot != -1 else ""


def first_url(*values: Any) -> Optional[str]:
    """Return the first non-empty string among the values."""
    for value in values:
        if isinstance(value, str) and value:
            return value
    return None


def classify_media(
    image: Optional[str],
    animation: Optional[str],
    animation_mime: str = "",
) -> Optional[Dict[str, Any]]:
    """
    Classify media from the image and animation URLs.

    Animations are preferred when their format is recognizable; an animation
    of unknown format is ignored if an image exists.

    Args:
        image: Still image URL, if any
        animation: Animation URL, if any
        animation_mime: MIME type of the animation when the source provides one

    Returns:
        Collectible media fields (``media_type`` plus the matching URL fields),
        or None when the record has nothing that can be rendered
    """
    image_ext = _extension(image)
    animation_ext = _extension(animation)

    if image_ext in GIF_EXTENSIONS or animation_ext in GIF_EXTENSIONS:
        gif = image if image_ext in GIF_EXTENSIONS else animation
        return {"media_type": MediaType.GIF, "gif_url": gif, "frame_url": image}

    if animation and (animation_ext in THREE_D_EXTENSIONS or animation_mime.startswith("model/")):
        return {"media_type": MediaType.THREE_D, "three_d_url": animation, "frame_url": image}

    if animation and (animation_ext in VIDEO_EXTENSIONS or animation_mime.startswith("video/")):
        return {"media_type": MediaType.VIDEO, "video_url": animation, "frame_url": image}

    if image:
        return {"media_type": MediaType.IMAGE, "image_url": image, "frame_url": image}

    if animation and animation_ext in IMAGE_EXTENSIONS:
        return {"media_type": MediaType.IMAGE, "image_url": animation, "frame_url": animation}

    return None


def eth_media_sources(asset: Any) -> MediaSources:
    """Pick the image and animation URLs of an OpenSea asset record."""
    if not isinstance(asset, dict):
        return None, None, ""
    image = first_url(
        asset.get("image_url"),
        asset.get("image_original_url"),
        asset.get("image_preview_url"),
        asset.get("image_thumbnail_url"),
    )
    animation = first_url(asset.get("animation_url"), asset.get("animation_original_url"))
    return image, animation, ""


def solana_media_sources(item: Any) -> MediaSources:
    """
    Pick the image and animation URLs of a DAS asset item.

    ``content.links`` wins over ``content.files``; a file is used as the
    animation only when its MIME type says video or 3D, and any file URI
    stands in for the image when nothing else is available.
    """
    content = item.get("content") if isinstance(item, dict) else None
    if not isinstance(content, dict):
        return None, None, ""
    links = content.get("links")
    if not isinstance(links, dict):
        links = {}
    raw_files = content.get("files")
    files: List[dict] = [f for f in raw_files if isinstance(f, dict)] if isinstance(raw_files, list) else []

    image_files = [f.get("uri") for f in files if str(f.get("mime", "")).startswith("image/")]
    image = first_url(links.get("image"), *image_files)
    animation = first_url(links.get("animation_url"))
    animation_mime = ""
    if animation is None:
        for f in files:
            mime = str(f.get("mime", ""))
            uri = first_url(f.get("uri"))
            if uri and mime.startswith(("video/", "model/")):
                animation, animation_mime = uri, mime
                break
    if image is None and animation is None:
        image = first_url(*(f.get("uri") for f in files))

    return image, animation, animation_mime
