import asyncio
import base64
import binascii
import io
import ipaddress
import logging
import socket
from typing import NamedTuple, Optional

import httpx
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class ImageError(Exception):
    """Base error for images that cannot be read."""


class ImageLoadError(ImageError):
    """The image bytes could not be obtained."""


class ImageDecodeError(ImageError):
    """The bytes are not a decodable image."""


class DecodedImage(NamedTuple):
    width: int
    height: int
    pixels: np.ndarray  # (height, width, 4) uint8 RGBA


class ImageSource:
    """
    Reference to the image being classified.

    Either raw bytes (uploads) or a URL, which may be a ``data:`` URL or an
    ``http(s)`` URL fetched on first use. The outcome of the first load,
    bytes or error, is reused for the rest of the request.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
        fetch_timeout: float = 10.0,
        max_bytes: Optional[int] = None,
        block_private_hosts: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if url is None and data is None:
            raise ValueError("ImageSource needs a url or data")
        self.url = url
        self.content_type = content_type
        self._data = data
        self._error: Optional[ImageLoadError] = None
        self._fetch_timeout = fetch_timeout
        self._max_bytes = max_bytes
        self._block_private_hosts = block_private_hosts
        self._transport = transport

    @classmethod
    def from_bytes(cls, data: bytes, content_type: Optional[str] = None) -> "ImageSource":
        return cls(data=data, content_type=content_type)

    async def load_bytes(self) -> bytes:
        """
        Return the raw image bytes, fetching them at most once.

        Raises:
            ImageLoadError: If the URL is malformed, the fetch fails, or the
                image exceeds ``max_bytes``
        """
        if self._error is not None:
            raise self._error
        if self._data is None:
            try:
                if self.url.startswith("data:"):
                    self._data = _decode_data_url(self.url, self._max_bytes)
                else:
                    self._data = await self._fetch()
            except ImageLoadError as e:
                self._error = e
                raise
        return self._data

    def _too_large(self, size: int) -> bool:
        return self._max_bytes is not None and size > self._max_bytes

    async def _fetch(self) -> bytes:
        if not self.url.startswith(("http://", "https://")):
            raise ImageLoadError(f"Unsupported image URL scheme: {self.url[:32]}")
        if self._block_private_hosts:
            await _ensure_public_host(self.url)

        try:
            async with httpx.AsyncClient(
                timeout=self._fetch_timeout, transport=self._transport
            ) as client:
                # A checked public URL must not redirect to an unchecked host.
                async with client.stream(
                    "GET", self.url, follow_redirects=not self._block_private_hosts
                ) as response:
                    response.raise_for_status()
                    declared = response.headers.get("content-length")
                    if declared is not None and declared.isdigit() and self._too_large(int(declared)):
                        raise ImageLoadError(f"Image too large: {declared} bytes")

                    buffer = bytearray()
                    async for chunk in response.aiter_bytes():
                        buffer.extend(chunk)
                        if self._too_large(len(buffer)):
                            raise ImageLoadError(f"Image larger than {self._max_bytes} bytes")
        except httpx.HTTPError as e:
            raise ImageLoadError(f"Image fetch failed: {str(e)}") from e

        if self.content_type is None:
            self.content_type = response.headers.get("content-type")
        return bytes(buffer)


async def _ensure_public_host(url: str) -> None:
    """Reject URLs whose host resolves to a loopback, private or link-local address."""
    host = httpx.URL(url).host
    if not host:
        raise ImageLoadError("Image URL has no host")
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(host, None)
    except socket.gaierror as e:
        raise ImageLoadError(f"Cannot resolve image host {host}: {str(e)}") from e

    for info in infos:
        address = ipaddress.ip_address(info[4][0].split("%", 1)[0])
        if not address.is_global:
            raise ImageLoadError(f"Image host {host} is not publicly routable")


def _decode_data_url(url: str, max_bytes: Optional[int] = None) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URL")
    if not header.endswith(";base64"):
        raise ImageLoadError("Only base64 data URLs are supported")
    # base64 expands by 4/3; check before decoding anything
    if max_bytes is not None and len(payload) * 3 // 4 > max_bytes + 2:
        raise ImageLoadError(f"Image larger than {max_bytes} bytes")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 payload: {str(e)}") from e
    if max_bytes is not None and len(data) > max_bytes:
        raise ImageLoadError(f"Image larger than {max_bytes} bytes")
    return data


def decode_pixels(data: bytes) -> DecodedImage:
    """
    Decode image bytes into an RGBA pixel array.

    Raises:
        ImageDecodeError: If Pillow cannot read the data
    """
    if not data:
        raise ImageDecodeError("Empty image data")
    try:
        with Image.open(io.BytesIO(data)) as image:
            rgba = image.convert("RGBA")
            pixels = np.asarray(rgba, dtype=np.uint8)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Image decode failed: {str(e)}") from e

    height, width = pixels.shape[:2]
    logger.debug(f"Decoded image {width}x{height}")
    return DecodedImage(width=width, height=height, pixels=pixels)
