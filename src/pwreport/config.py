"""Reporter options and ``.pwreport.yml`` parsing."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".pwreport.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

DEFAULT_OUTPUT_DIR = "playwright-report/pdf"
DEFAULT_FILE_NAME = "test-report.pdf"
DEFAULT_HISTORY_PATH = "playwright-report/pdf/history.json"
DEFAULT_TREND_LABEL = "Overall"
PDF_SUFFIX = ".pdf"

THEMES = ("light", "dark")
REPORT_TYPES = ("summary", "execution", "defect", "full")

METADATA_KEYS = (
    "title",
    "author",
    "build",
    "environment",
    "project",
    "release",
    "ci_link",
    "tags",
)
SCOPE_KEYS = ("objectives", "data_sets", "pass_criteria", "risks", "alignment")
SECTION_KEYS = ("challenges", "lessons_learned", "recommendations")

_BOOL_KEYS = ("include_screenshots", "include_html", "fast_mode")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ReporterOptions:
    """Resolved reporter options."""

    output_dir: str = DEFAULT_OUTPUT_DIR
    """Directory that receives the PDF (and HTML) artifacts."""

    file_name: str = DEFAULT_FILE_NAME
    """PDF file name; always ends in ``.pdf``."""

    theme: str = "light"
    """Visual theme: light or dark."""

    include_screenshots: bool = True
    """Inline image attachments into the report."""

    include_html: bool = True
    """Also write the intermediate HTML next to the PDF."""

    historical_data_path: str | None = DEFAULT_HISTORY_PATH
    """History JSON file (``None`` disables history)."""

    report_type: str = "full"
    """Report mode: summary, execution, defect or full."""

    trend_label: str = DEFAULT_TREND_LABEL
    """Label of the trend series."""

    bug_tracker_base_url: str | None = None
    """Base URL for ``#123`` issue links (disabled when unset)."""

    fast_mode: bool = False
    """Skip screenshots, HTML output and history."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """Report metadata overrides (unset keys are defaulted at assembly)."""

    scope: dict[str, Any] = field(default_factory=dict)
    """Test scope overrides."""

    custom_sections: dict[str, Any] = field(default_factory=dict)
    """Custom narrative section overrides."""

    @property
    def html_file_name(self) -> str:
        """Name of the intermediate HTML artifact."""
        return re.sub(r"\.pdf$", ".html", self.file_name, flags=re.IGNORECASE)

    @property
    def history_enabled(self) -> bool:
        return bool(self.historical_data_path)


def _normalize_file_name(value: Any) -> str:
    name = str(value or "") or DEFAULT_FILE_NAME
    if name.lower().endswith(PDF_SUFFIX):
        return name
    return f"{name}{PDF_SUFFIX}"


def _choice(raw: dict[str, Any], key: str, choices: tuple[str, ...], default: str) -> str:
    value = raw.get(key)
    if value is None:
        return default
    value = str(value).strip().lower()
    if value not in choices:
        logger.warning("Unsupported %s %r, falling back to %r", key, value, default)
        return default
    return value


_TRUE_VALUES = (True, "true", "1", "yes")
_FALSE_VALUES = (False, "false", "0", "no", "")


def _flag(raw: dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, str):
        value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES or value is None:
        return False
    logger.warning("Unsupported %s %r, falling back to %r", key, value, default)
    return default


def _section(raw: dict[str, Any], key: str, allowed: tuple[str, ...]) -> dict[str, Any]:
    section = raw.get(key)
    if not isinstance(section, dict):
        return {}
    return {name: value for name, value in section.items() if name in allowed and value is not None}


def resolve_options(raw: dict[str, Any] | None = None) -> ReporterOptions:
    """Merge *raw* options over the defaults.

    ``historical_data_path`` distinguishes "not provided" (the default path
    is used) from "explicitly cleared" (``None`` or empty disables history).
    ``fast_mode`` forcibly disables screenshots, HTML output and history.

    Args:
        raw: Option mapping (from YAML, CLI flags or code).

    Returns:
        Fully resolved ``ReporterOptions``.
    """
    raw = dict(raw or {})

    if "historical_data_path" in raw:
        history_raw = raw["historical_data_path"]
        history_path = os.path.normpath(str(history_raw)) if history_raw else None
    else:
        history_path = os.path.normpath(DEFAULT_HISTORY_PATH)

    bug_tracker = raw.get("bug_tracker_base_url")

    options = ReporterOptions(
        output_dir=os.path.normpath(str(raw.get("output_dir") or DEFAULT_OUTPUT_DIR)),
        file_name=_normalize_file_name(raw.get("file_name")),
        theme=_choice(raw, "theme", THEMES, "light"),
        include_screenshots=_flag(raw, "include_screenshots", True),
        include_html=_flag(raw, "include_html", True),
        historical_data_path=history_path,
        report_type=_choice(raw, "report_type", REPORT_TYPES, "full"),
        trend_label=str(raw.get("trend_label") or DEFAULT_TREND_LABEL),
        bug_tracker_base_url=str(bug_tracker) if bug_tracker else None,
        fast_mode=_flag(raw, "fast_mode", False),
        metadata=_section(raw, "metadata", METADATA_KEYS),
        scope=_section(raw, "scope", SCOPE_KEYS),
        custom_sections=_section(raw, "custom_sections", SECTION_KEYS),
    )

    if options.fast_mode:
        logger.info("Fast mode: screenshots, HTML output and history disabled")
        options.include_screenshots = False
        options.include_html = False
        options.historical_data_path = None

    return options


def load_config(root: str | Path) -> dict[str, Any]:
    """Load the raw ``.pwreport.yml`` mapping with ``${ENV}`` placeholders resolved.

    A missing or non-mapping file yields an empty mapping.
    """
    config_path = Path(root).resolve() / CONFIG_FILENAME
    if not config_path.is_file():
        logger.debug("No %s found in %s", CONFIG_FILENAME, root)
        return {}

    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(parsed, dict):
        logger.warning("Ignoring %s: top level is not a mapping", config_path)
        return {}
    return _resolve_dict(parsed)


def load_options(root: str | Path, overrides: dict[str, Any] | None = None) -> ReporterOptions:
    """Load ``.pwreport.yml`` from *root*, apply *overrides* and resolve.

    Nested ``metadata`` / ``scope`` / ``custom_sections`` overrides are merged
    key by key into the file's values.
    """
    raw = load_config(root)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(raw.get(key), dict):
            raw[key] = {**raw[key], **value}
        else:
            raw[key] = value
    return resolve_options(raw)


def validate_options(raw: dict[str, Any]) -> list[str]:
    """Validate a raw option mapping.

    Returns:
        List of error messages (empty if valid).
    """
    errors: list[str] = []

    theme = raw.get("theme")
    if theme is not None and str(theme).lower() not in THEMES:
        errors.append(f"theme must be one of: {', '.join(THEMES)} (got: {theme})")

    report_type = raw.get("report_type")
    if report_type is not None and str(report_type).lower() not in REPORT_TYPES:
        errors.append(
            f"report_type must be one of: {', '.join(REPORT_TYPES)} (got: {report_type})"
        )

    for key in _BOOL_KEYS:
        value = raw.get(key)
        if isinstance(value, str):
            value = value.strip().lower()
        if key in raw and value not in (*_TRUE_VALUES, *_FALSE_VALUES):
            errors.append(f"{key} must be a boolean (got: {raw[key]!r})")

    for key, allowed in (
        ("metadata", METADATA_KEYS),
        ("scope", SCOPE_KEYS),
        ("custom_sections", SECTION_KEYS),
    ):
        section = raw.get(key)
        if section is None:
            continue
        if not isinstance(section, dict):
            errors.append(f"{key} must be a mapping")
            continue
        unknown = sorted(set(section) - set(allowed))
        if unknown:
            errors.append(f"{key} has unknown keys: {', '.join(unknown)}")

    bug_tracker = raw.get("bug_tracker_base_url")
    if bug_tracker and not str(bug_tracker).startswith(("http://", "https://")):
        errors.append("bug_tracker_base_url must start with http:// or https://")

    return errors
