"""Config-file loading, generated-file writing and the RFD index."""

from __future__ import annotations

import csv
import io
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Union

logger = logging.getLogger("opsync.files")

# The warning for files that we generate, so folks don't edit them by hand.
TEMPLATE_WARNING = """# THIS FILE HAS BEEN GENERATED BY THE CONFIGS REPO
# AND SHOULD NEVER BE EDITED BY HAND!!
# Instead change the link in configs/links.toml

"""

RFD_REPO = "rfd"
RFD_INDEX_PATH = ".helpers/rfd.csv"

PathLike = Union[str, Path]


class ConfigFileError(ValueError):
    """A config file could not be read, decoded or merged."""


def _is_table_array(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def _merge(into: dict[str, Any], other: dict[str, Any], source: str, prefix: str = "") -> None:
    for key, value in other.items():
        dotted = f"{prefix}{key}"
        if key not in into:
            into[key] = value
        elif isinstance(into[key], dict) and isinstance(value, dict):
            _merge(into[key], value, source, prefix=f"{dotted}.")
        elif _is_table_array(into[key]) and _is_table_array(value):
            into[key] = into[key] + value
        else:
            raise ConfigFileError(f"{source}: key {dotted!r} is already defined")


def load_config_files(paths: Iterable[PathLike]) -> dict[str, Any]:
    """Decode each TOML file and merge them in argument order.

    Tables are merged recursively, so ``[users.alice]`` in one file and
    ``[users.bob]`` in another both end up under ``users``. Arrays of tables
    (``[[labels]]``) are appended in file order. Defining any other key twice
    is an error.
    """
    paths = list(paths)
    if not paths:
        raise ConfigFileError("no configuration files specified")

    config: dict[str, Any] = {}
    for path in paths:
        logger.info("decoding %s", path)
        try:
            body = Path(path).read_text()
        except OSError as exc:
            raise ConfigFileError(f"reading {path} failed: {exc}") from exc
        try:
            doc = tomllib.loads(body)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigFileError(f"decoding {path} failed: {exc}") from exc
        _merge(config, doc, str(path))
    return config


def write_file(path: PathLike, contents: str) -> None:
    """Write ``contents`` to ``path``, creating parent directories.

    Overwrites in place, so a crash mid-write leaves a truncated file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(contents)
    logger.info("wrote file: %s", path)


def render_links(config: dict[str, Any]) -> str:
    """Short-link redirect map: one ``name url`` line per link and alias."""
    lines = []
    for name, link in sorted(config.get("links", {}).items()):
        if "link" not in link:
            raise ConfigFileError(f"links.{name} has no 'link'")
        for alias in [name, *link.get("aliases", [])]:
            lines.append(f"{alias} {link['link']}")
    return TEMPLATE_WARNING + "\n".join(lines) + "\n"


@dataclass(frozen=True)
class RFD:
    number: str
    title: str
    link: str
    state: str
    discussion: str


def parse_rfds(text: str) -> dict[int, RFD]:
    """Parse the RFD index CSV (header row first) into number -> RFD, by number."""
    rfds: dict[int, RFD] = {}
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for line_no, record in enumerate(reader, start=2):
        if not record:
            continue
        if len(record) < 5:
            raise ValueError(f"rfd.csv line {line_no}: expected 5 columns, got {len(record)}")
        try:
            number = int(record[0])
        except ValueError:
            raise ValueError(f"rfd.csv line {line_no}: RFD number {record[0]!r} is not numeric") from None
        rfds[number] = RFD(
            number=record[0],
            title=record[1],
            link=record[2],
            state=record[3],
            discussion=record[4],
        )
    return dict(sorted(rfds.items()))


def load_rfds(github) -> dict[int, RFD]:
    """Fetch and parse the RFD index from the org's rfd repository."""
    content = github.get_file_content(RFD_REPO, RFD_INDEX_PATH)
    rfds = parse_rfds(content.decode("utf-8"))
    logger.info("Loaded %d RFDs from %s/%s", len(rfds), RFD_REPO, RFD_INDEX_PATH)
    return rfds
