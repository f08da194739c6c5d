"""
EPUB (OCF ZIP) container reader.
"""

import mimetypes
import posixpath
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

from lxml import etree

from ...utils.errors import ContainerError, Forbidden, NotFound, Other, Unavailable
from ..fetcher import Encryption, FailureResource, Link, Resource, ResourceResult, clamp_range

CONTAINER_PATH = "META-INF/container.xml"
ENCRYPTION_PATH = "META-INF/encryption.xml"

LCP_SCHEME = "http://readium.org/2014/01/lcp"
_LCP_KEY_RETRIEVAL = "license.lcpl#/encryption/content_key"

NS = {
    "c": "urn:oasis:names:tc:opendocument:xmlns:container",
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "enc": "http://www.w3.org/2001/04/xmlenc#",
    "ds": "http://www.w3.org/2000/09/xmldsig#",
    "comp": "http://www.idpf.org/2016/encryption#compression",
}


@dataclass
class EpubPackage:
    """Metadata of the publication found in the container."""

    opf_path: str
    unique_identifier: str | None
    media_types: dict[str, str] = field(default_factory=dict)  # {path: media type}
    encryptions: dict[str, Encryption] = field(default_factory=dict)  # {path: encryption}


def _parse_xml(data: bytes, name: str):
    try:
        return etree.fromstring(data)
    except etree.XMLSyntaxError as e:
        raise ContainerError(f"Invalid XML in {name}: {e}")


def _resolve(base_dir: str, href: str) -> str:
    """Resolve an href relative to a directory of the container."""
    path = unquote(href.split("#", 1)[0])
    return posixpath.normpath(posixpath.join(base_dir, path)).lstrip("/")


def parse_encryption(data: bytes) -> dict[str, Encryption]:
    """
    Parse META-INF/encryption.xml.

    Args:
        data: Raw XML content

    Returns:
        Encryption properties keyed by container path
    """
    root = _parse_xml(data, ENCRYPTION_PATH)
    encryptions: dict[str, Encryption] = {}

    for encrypted in root.findall("enc:EncryptedData", NS):
        method = encrypted.find("enc:EncryptionMethod", NS)
        reference = encrypted.find("enc:CipherData/enc:CipherReference", NS)
        if method is None or reference is None:
            continue
        algorithm = method.get("Algorithm")
        uri = reference.get("URI")
        if not algorithm or not uri:
            continue

        scheme = None
        retrieval = encrypted.find("ds:KeyInfo/ds:RetrievalMethod", NS)
        if retrieval is not None and retrieval.get("URI") == _LCP_KEY_RETRIEVAL:
            scheme = LCP_SCHEME

        compression = None
        original_length = None
        compression_elem = encrypted.find(
            "enc:EncryptionProperties/enc:EncryptionProperty/comp:Compression", NS
        )
        if compression_elem is not None:
            method_id = compression_elem.get("Method")
            if method_id == "8":
                compression = "deflate"
            elif method_id == "0":
                compression = "none"
            length = compression_elem.get("OriginalLength")
            if length and length.isdigit():
                original_length = int(length)

        encryptions[_resolve("", uri)] = Encryption(
            algorithm=algorithm,
            original_length=original_length,
            compression=compression,
            scheme=scheme,
        )

    return encryptions


def parse_package(opf_path: str, data: bytes) -> EpubPackage:
    """Parse the OPF package document: unique identifier and manifest media types."""
    root = _parse_xml(data, opf_path)
    base_dir = posixpath.dirname(opf_path)

    identifiers = root.findall("opf:metadata/dc:identifier", NS)
    unique_id = root.get("unique-identifier")
    identifier = next(
        (elem for elem in identifiers if unique_id and elem.get("id") == unique_id),
        identifiers[0] if identifiers else None,
    )

    media_types: dict[str, str] = {}
    for item in root.findall("opf:manifest/opf:item", NS):
        href = item.get("href")
        media_type = item.get("media-type")
        if href and media_type:
            media_types[_resolve(base_dir, href)] = media_type

    unique_identifier = None
    if identifier is not None and identifier.text and identifier.text.strip():
        unique_identifier = identifier.text.strip()

    return EpubPackage(
        opf_path=opf_path,
        unique_identifier=unique_identifier,
        media_types=media_types,
    )


class ZipResource(Resource):
    """Serves one entry of a ZIP archive."""

    def __init__(self, archive: zipfile.ZipFile, name: str, link: Link):
        self._archive = archive
        self._name = name
        self._link = link
        self._closed = False

    @property
    def link(self) -> Link:
        return self._link

    def length(self) -> ResourceResult[int]:
        try:
            return ResourceResult.success(self._archive.getinfo(self._name).file_size)
        except KeyError:
            return ResourceResult.failure(NotFound(f"Entry not found: {self._name}"))

    def read(self, byte_range: range | None = None) -> ResourceResult[bytes]:
        if self._closed:
            return ResourceResult.failure(Unavailable(f"Resource is closed: {self._name}"))

        try:
            info = self._archive.getinfo(self._name)
            with self._archive.open(info) as entry:
                if byte_range is None:
                    return ResourceResult.success(entry.read())
                clamped = clamp_range(byte_range, info.file_size)
                entry.seek(clamped.start)
                return ResourceResult.success(entry.read(len(clamped)))
        except KeyError:
            return ResourceResult.failure(NotFound(f"Entry not found: {self._name}"))
        except RuntimeError as e:
            # Password-protected ZIP entry
            return ResourceResult.failure(Forbidden(str(e)))
        except ValueError as e:
            # Archive already closed
            return ResourceResult.failure(Unavailable(str(e)))
        except OSError as e:
            return ResourceResult.failure(Unavailable(str(e)))
        except (zipfile.BadZipFile, zlib.error, NotImplementedError) as e:
            return ResourceResult.failure(Other(e))

    def close(self) -> None:
        self._closed = True


class EpubContainer:
    """Reads the resources of an EPUB file.

    Produces raw ``Resource`` instances whose links carry the media type from the
    OPF manifest and the encryption declared in META-INF/encryption.xml.
    """

    def __init__(self, path: Path):
        path = Path(path).expanduser()
        if not path.exists():
            raise ContainerError(f"EPUB file not found: {path}")

        try:
            self._archive = zipfile.ZipFile(path, "r")
        except zipfile.BadZipFile as e:
            raise ContainerError(f"Not a valid EPUB (ZIP) file: {path}: {e}")

        self.path = path
        self._package: EpubPackage | None = None

    def close(self):
        """Close the underlying archive."""
        self._archive.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def package(self) -> EpubPackage:
        """Publication metadata, parsed on first access."""
        if self._package is not None:
            return self._package

        names = set(self._archive.namelist())
        if CONTAINER_PATH not in names:
            raise ContainerError(f"Missing {CONTAINER_PATH} in {self.path}")

        container = _parse_xml(self._archive.read(CONTAINER_PATH), CONTAINER_PATH)
        rootfile = container.find("c:rootfiles/c:rootfile", NS)
        opf_path = rootfile.get("full-path") if rootfile is not None else None
        if not opf_path or opf_path not in names:
            raise ContainerError(f"Package document not found in {self.path}")

        package = parse_package(opf_path, self._archive.read(opf_path))
        if ENCRYPTION_PATH in names:
            package.encryptions = parse_encryption(self._archive.read(ENCRYPTION_PATH))

        self._package = package
        return self._package

    @property
    def unique_identifier(self) -> str | None:
        return self.package.unique_identifier

    @property
    def links(self) -> list[Link]:
        """Links to every file entry of the archive, in archive order."""
        return [
            self._link_for(info.filename)
            for info in self._archive.infolist()
            if not info.is_dir()
        ]

    def get(self, href: str) -> Resource:
        """
        Get the resource at ``href`` (path relative to the container root).

        A missing entry gives a ``FailureResource`` with a ``NotFound`` error.
        """
        name = _resolve("", href)
        link = self._link_for(name)
        try:
            self._archive.getinfo(name)
        except KeyError:
            return FailureResource(link, NotFound(f"Entry not found: {name}"))
        return ZipResource(self._archive, name, link)

    def _link_for(self, name: str) -> Link:
        package = self.package
        media_type = package.media_types.get(name) or mimetypes.guess_type(name)[0]
        return Link(href=name, type=media_type, encryption=package.encryptions.get(name))
