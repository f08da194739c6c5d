from __future__ import annotations

import hashlib
import zipfile
from pathlib import Path

import pytest

PUBLICATION_ID = "urn:uuid:12345678-1234-1234-1234-123456789abc"
IDPF_ALGORITHM = "http://www.idpf.org/2008/embedding"
ADOBE_ALGORITHM = "http://ns.adobe.com/pdf/enc#RC"

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

PACKAGE_OPF = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="pub-id">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="isbn">9780000000000</dc:identifier>
    <dc:identifier id="pub-id">
      {identifier}
    </dc:identifier>
    <dc:title>Test Book</dc:title>
  </metadata>
  <manifest>
    <item id="ch1" href="text/chapter%201.xhtml" media-type="application/xhtml+xml"/>
    <item id="idpf" href="fonts/idpf.otf" media-type="font/otf"/>
    <item id="adobe" href="fonts/adobe.ttf" media-type="font/ttf"/>
    <item id="drm" href="fonts/drm.woff" media-type="font/woff"/>
  </manifest>
  <spine>
    <itemref idref="ch1"/>
  </spine>
</package>
"""

ENCRYPTION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<encryption xmlns="urn:oasis:names:tc:opendocument:xmlns:container"
            xmlns:enc="http://www.w3.org/2001/04/xmlenc#"
            xmlns:ds="http://www.w3.org/2000/09/xmldsig#">
  <enc:EncryptedData>
    <enc:EncryptionMethod Algorithm="http://www.idpf.org/2008/embedding"/>
    <enc:CipherData><enc:CipherReference URI="OEBPS/fonts/idpf.otf"/></enc:CipherData>
  </enc:EncryptedData>
  <enc:EncryptedData>
    <enc:EncryptionMethod Algorithm="http://ns.adobe.com/pdf/enc#RC"/>
    <enc:CipherData><enc:CipherReference URI="OEBPS/fonts/adobe.ttf"/></enc:CipherData>
  </enc:EncryptedData>
  <enc:EncryptedData>
    <enc:EncryptionMethod Algorithm="http://www.w3.org/2001/04/xmlenc#aes256-cbc"/>
    <ds:KeyInfo>
      <ds:RetrievalMethod URI="license.lcpl#/encryption/content_key"
                          Type="http://readium.org/2014/01/lcp#EncryptedContentKey"/>
    </ds:KeyInfo>
    <enc:CipherData><enc:CipherReference URI="OEBPS/fonts/drm.woff"/></enc:CipherData>
    <enc:EncryptionProperties>
      <enc:EncryptionProperty>
        <Compression xmlns="http://www.idpf.org/2016/encryption#compression"
                     Method="8" OriginalLength="4096"/>
      </enc:EncryptionProperty>
    </enc:EncryptionProperties>
  </enc:EncryptedData>
</encryption>
"""

CHAPTER_XHTML = "<html><body><p>Hello</p></body></html>"


def xor_with_key(data: bytes, key: bytes, limit: int) -> bytes:
    head = bytes(b ^ key[i % len(key)] for i, b in enumerate(data[:limit]))
    return head + data[limit:]


def idpf_key(publication_id: str) -> bytes:
    return hashlib.sha1(publication_id.encode("utf-8")).digest()


ADOBE_KEY = bytes.fromhex("12345678123412341234123456789abc")

FONT_DATA = bytes(range(256)) * 8  # 2048 bytes, longer than both obfuscated prefixes


@pytest.fixture
def epub_path(tmp_path: Path) -> Path:
    """An EPUB with an IDPF-obfuscated font, an Adobe-obfuscated font and an LCP-encrypted font."""
    path = tmp_path / "book.epub"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        zf.writestr("META-INF/container.xml", CONTAINER_XML)
        zf.writestr("META-INF/encryption.xml", ENCRYPTION_XML)
        zf.writestr("OEBPS/content.opf", PACKAGE_OPF.format(identifier=PUBLICATION_ID))
        zf.writestr("OEBPS/text/chapter 1.xhtml", CHAPTER_XHTML, compress_type=zipfile.ZIP_DEFLATED)
        zf.writestr("OEBPS/fonts/idpf.otf", xor_with_key(FONT_DATA, idpf_key(PUBLICATION_ID), 1040))
        zf.writestr("OEBPS/fonts/adobe.ttf", xor_with_key(FONT_DATA, ADOBE_KEY, 1024), compress_type=zipfile.ZIP_DEFLATED)
        zf.writestr("OEBPS/fonts/drm.woff", b"\x00" * 64)
    return path
