"""
Reading SOP documents and writing exported scripts.

SOP documents are the JSON the rule editor saves: either a bare SOP object
or an envelope of the form ``{"sop": {...}}``.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import pydantic

from sop_script.compiler.compiler import export_filename
from sop_script.core.errors import NotFoundError, ValidationError
from sop_script.domain.models import SOP

logger = logging.getLogger(__name__)

_UNSAFE_PATH_CHARS = re.compile(r"[/\\\x00]")


def parse_sop(document: Any, source: str = "<input>") -> SOP:
    """
    Build an SOP from decoded JSON.

    Raises:
        ValidationError: If the document is not a valid SOP
    """
    if isinstance(document, dict) and isinstance(document.get("sop"), dict):
        document = document["sop"]

    try:
        return SOP.model_validate(document)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid SOP document in {source}",
            details={
                "source": source,
                "errors": [
                    {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e


def loads_sop(text: str | bytes, source: str = "<input>") -> SOP:
    """
    Parse an SOP from JSON text, or from UTF-8 encoded bytes.

    Raises:
        ValidationError: If the input is not UTF-8, not JSON or not a valid SOP
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(
                f"SOP document in {source} is not valid UTF-8",
                details={"source": source, "position": e.start, "error": e.reason},
            ) from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"SOP document in {source} is not valid JSON",
            details={"source": source, "line": e.lineno, "column": e.colno, "error": e.msg},
        ) from e

    return parse_sop(document, source=source)


def load_sop(path: Path | str) -> SOP:
    """
    Load an SOP JSON file.

    Raises:
        NotFoundError: If the file does not exist
        ValidationError: If the file cannot be read or is not a valid SOP document
    """
    path = Path(path)
    if not path.is_file():
        raise NotFoundError("SOP file not found", details={"path": str(path)})

    logger.debug("Loading SOP from %s", path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ValidationError(
            f"Cannot read SOP file {path}", details={"source": str(path), "error": str(e)}
        ) from e

    return loads_sop(raw, source=str(path))


def safe_stem(sop_name: str | None) -> str | None:
    """
    Reduce an SOP name to a single file name component.

    Path separators become ``_`` and leading dots and whitespace are dropped,
    so the result can never leave the directory it is joined to.

    Example:
        >>> safe_stem("../ops/triage"), safe_stem("..")
        ('_ops_triage', None)
    """
    if not sop_name:
        return None
    stem = _UNSAFE_PATH_CHARS.sub("_", sop_name).lstrip(". \t")
    return stem or None


def write_script(text: str, destination: Path | str, sop_name: str | None = None) -> Path:
    """
    Write a compiled script to disk as UTF-8.

    If ``destination`` is an existing directory, or ends with a path
    separator, the file is named after the SOP (see export_filename and
    safe_stem). Missing parent directories are created.

    Returns:
        Path of the written file

    Raises:
        OSError: If the file cannot be written
    """
    as_directory = str(destination).endswith(("/", "\\"))
    destination = Path(destination)
    if as_directory or destination.is_dir():
        destination = destination / export_filename(safe_stem(sop_name))

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8")
    logger.info("Wrote S1 script to %s (%d bytes)", destination, len(text.encode("utf-8")))
    return destination
