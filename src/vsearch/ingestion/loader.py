"""Case records: decoding, markup stripping and JSON-Lines import."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vsearch.exceptions import DecodeError
from vsearch.store import Partition, decode_id, encode_id

logger = logging.getLogger(__name__)


class Case(BaseModel):
    """A published court judgment as stored in the ``cases`` partition.

    Stored records use the Chinese field names of the source dataset; the
    English field names are accepted too.  Only ``case_type`` and
    ``full_text`` drive ingestion, the rest is passed through.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    doc_id: str = Field(default="", alias="原始链接")
    case_id: str = Field(default="", alias="案号")
    case_name: str = Field(default="", alias="案件名称")
    court: str = Field(default="", alias="法院")
    case_type: str = Field(default="", alias="案件类型")
    procedure: str = Field(default="", alias="审理程序")
    judgment_date: str = Field(default="", alias="裁判日期")
    public_date: str = Field(default="", alias="公开日期")
    parties: str = Field(default="", alias="当事人")
    cause: str = Field(default="", alias="案由")
    legal_basis: str = Field(default="", alias="法律依据")
    full_text: str = Field(default="", alias="全文")

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


def decode_case(raw: bytes) -> Case:
    """Deserialize a stored value into a :class:`Case`."""
    try:
        return Case.model_validate_json(raw)
    except ValidationError as exc:
        raise DecodeError(f"stored value is not a valid case: {exc}") from exc


def strip_markup(html: str) -> str:
    """Return the text nodes of *html* joined by newlines.

    ``html.parser`` tolerates malformed markup, so this never raises.
    """
    return BeautifulSoup(html, "html.parser").get_text(separator="\n")


def import_cases(cases: Partition, path: str | Path) -> int:
    """Append every case in a JSON-Lines file to the *cases* partition.

    New ids continue after the partition's highest existing key.  Blank
    lines are ignored; a malformed line aborts the import.

    Returns
    -------
    int
        Number of cases written.
    """
    last = cases.last_key()
    next_id = decode_id(last) + 1 if last is not None else 1
    written = 0
    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                case = Case.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as exc:
                raise DecodeError(f"{path}:{lineno}: {exc}") from exc
            cases.insert(encode_id(next_id), case.to_bytes())
            next_id += 1
            written += 1
    logger.info("Imported %d cases from %s", written, path)
    return written
