"""Image recompression and the content-addressed cache wrapper."""

import dataclasses
import io
import logging

from PIL import Image

from frontbuild.cache import ContentCache
from frontbuild.config.settings import ImageSettings
from frontbuild.exceptions import TransformError
from .base import Asset, Step
from .shell import ShellStep

logger = logging.getLogger(__name__)

FORMATS = {
    '.jpg': 'JPEG',
    '.jpeg': 'JPEG',
    '.png': 'PNG',
    '.gif': 'GIF',
}


class ImageCompress(Step):
    """Recompress GIF, JPEG and PNG with Pillow, SVG with a command.

    - JPEG: re-encoded at `jpeg_quality`, optionally progressive
    - PNG: quantized to `png_colors` colors, optimized
    - GIF: optimized, optionally interlaced, all frames kept

    The recompressed bytes are only used when smaller than the input.
    Other file types pass through unchanged.
    """

    name = 'imagemin'

    def __init__(self, settings: ImageSettings = ImageSettings()):
        self.settings = settings
        self._svg = ShellStep(settings.svg_command) if settings.svg_command else None

    def apply(self, asset: Asset) -> Asset:
        suffix = asset.path.suffix.lower()
        if suffix == '.svg':
            return self._svg.apply(asset) if self._svg else asset
        fmt = FORMATS.get(suffix)
        if fmt is None:
            return asset

        try:
            with Image.open(io.BytesIO(asset.contents)) as img:
                img.load()
                data = self._encode(img, fmt)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise TransformError(f"cannot compress image: {e}", path=str(asset.source))

        if len(data) >= len(asset.contents):
            return asset
        return asset.replace(contents=data)

    def _encode(self, img: 'Image.Image', fmt: str) -> bytes:
        out = io.BytesIO()
        if fmt == 'JPEG':
            if img.mode not in ('RGB', 'L', 'CMYK'):
                img = img.convert('RGB')
            img.save(out, format='JPEG', quality=self.settings.jpeg_quality,
                     optimize=True, progressive=self.settings.progressive)
        elif fmt == 'PNG':
            if img.mode != 'P':
                if img.mode not in ('RGB', 'RGBA'):
                    img = img.convert('RGBA')
                method = (Image.Quantize.FASTOCTREE if img.mode == 'RGBA'
                          else Image.Quantize.MEDIANCUT)
                img = img.quantize(colors=self.settings.png_colors, method=method)
            img.save(out, format='PNG', optimize=True)
        else:
            img.save(out, format='GIF', optimize=True,
                     interlace=self.settings.gif_interlaced,
                     save_all=getattr(img, 'is_animated', False))
        return out.getvalue()

    def params(self):
        return dataclasses.asdict(self.settings)


class Cached(Step):
    """Serve a step's output from a ContentCache when possible.

    The key covers the asset's relative path, a hash of its contents and
    the wrapped step's parameters, so any change to those is a miss.
    The wrapped step must return a single asset.
    """

    def __init__(self, step: Step, cache: ContentCache):
        self.step = step
        self.cache = cache
        self.name = f'cached-{step.name}'

    def apply(self, asset: Asset) -> Asset:
        key = self.cache.key(asset.relative.as_posix(), asset.contents, self.step.params())
        hit = self.cache.get(key)
        if hit is not None:
            logger.debug("Cache hit for %s", asset.relative)
            return asset.replace(contents=hit)

        result = self.step.apply(asset)
        try:
            self.cache.put(key, result.contents)
        except OSError as e:
            logger.warning("Could not cache %s: %s", asset.relative, e)
        return result

    def params(self):
        return self.step.params()
