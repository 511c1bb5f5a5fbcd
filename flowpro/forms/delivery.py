"""
Artifact delivery: the last hop for every generated document.

Names are sanitized here no matter what the generators already did, and
files are written through a temp file so a failed export never leaves a
half-written document in OUTPUT_DIR. Repeat exports of the same job get
_1, _2 ... suffixes instead of overwriting the earlier file.
"""

import os
import re
import logging
import tempfile

from flowpro.core import paths

log = logging.getLogger("flowpro.delivery")

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
OCTET_MIME = "application/octet-stream"

MAX_NAME_LEN = 150
_UNSAFE_CHARS = re.compile(r'[<>:"|?*]')
_MAX_COLLISIONS = 1000


def sanitize_filename(name, default: str = "document") -> str:
    """Make a caller-supplied name safe to write and to send as an attachment.

    Drops directory parts and control characters, swaps characters that
    Windows/macOS reject for "_", collapses whitespace, caps the length
    (extension kept). Never returns an empty or dot-only name.
    """
    name = str(name or "").replace("\\", "/").split("/")[-1]
    name = "".join(ch for ch in name if ch.isprintable())
    name = _UNSAFE_CHARS.sub("_", name)
    name = re.sub(r"\s+", " ", name).strip(" .")

    if len(name) > MAX_NAME_LEN:
        stem, ext = os.path.splitext(name)
        if len(ext) > 10:
            stem, ext = name, ""
        name = stem[:MAX_NAME_LEN - len(ext)].rstrip(" .") + ext

    return name or default


def guess_mimetype(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".pdf":
        return PDF_MIME
    if ext == ".docx":
        return DOCX_MIME
    return OCTET_MIME


def _claim_name(output_dir: str, name: str) -> str:
    """Reserve a free path by exclusive create: name.ext, name_1.ext, ..."""
    stem, ext = os.path.splitext(name)
    for n in range(_MAX_COLLISIONS):
        candidate = os.path.join(output_dir, name if n == 0 else f"{stem}_{n}{ext}")
        try:
            with open(candidate, "xb"):
                pass
            return candidate
        except FileExistsError:
            continue
    raise OSError(f"No free file name for {name} in {output_dir}")


def deliver_artifact(data: bytes, filename: str, output_dir: str = None) -> str:
    """Write the document to output_dir (default OUTPUT_DIR). Returns the final path."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"artifact data must be bytes, got {type(data).__name__}")

    output_dir = output_dir or paths.OUTPUT_DIR
    os.makedirs(output_dir, exist_ok=True)
    name = sanitize_filename(filename)

    fd, tmp = tempfile.mkstemp(prefix=".part-", dir=output_dir)
    final = None
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        final = _claim_name(output_dir, name)
        os.replace(tmp, final)
    except BaseException:
        # The claimed name is an empty placeholder until the replace lands
        for leftover in (tmp, final):
            if leftover and os.path.exists(leftover):
                os.remove(leftover)
        raise

    log.info("Delivered %s (%d bytes)", os.path.basename(final), len(data),
             extra={"artifact": os.path.basename(final)})
    return final
