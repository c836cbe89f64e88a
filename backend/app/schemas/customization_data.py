"""Customization Data Schemas — per-rule-type shape of `data`, plus content checks.

Invariants:
    - One model per RuleType (DATA_MODELS is exhaustive over RuleType)
    - Unknown keys are allowed and preserved: clients attach preview metadata freely
    - Shape errors and content errors are returned as messages, never raised,
      so they join the rule-graph errors in one {"valid", "errors"} result
    - Every message is prefixed with the rule title

Design Decisions:
    - Tagged by rule_type instead of walking `data: Any`: generic field names
      (photos, image) only mean artwork for the rule types that declare them
    - available_options is admin-authored JSON, so its readers tolerate both
      {"options": [...]} and a bare list, and both {"id": ...} objects and strings
"""

from typing import Annotated, Any

from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator,
)

from app.core.domain_types import RuleType


class _Data(BaseModel):
    model_config = ConfigDict(extra="allow")


def _as_str(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


# JSON ids arrive as str or int depending on who authored the options
IdStr = Annotated[str, BeforeValidator(_as_str)]


class Photo(_Data):
    """One photo: inline (base64) before materialization, preview_url after."""
    base64: str | None = None
    preview_url: str | None = None

    @model_validator(mode="after")
    def check_has_source(self):
        if not self.base64 and not self.preview_url:
            raise ValueError("photo needs base64 content or a preview_url")
        return self


class PhotoUploadData(_Data):
    photos: list[Photo] = Field(min_length=1)


class LayoutPresetData(_Data):
    layout_id: IdStr = Field(min_length=1)


class LayoutWithPhotosData(_Data):
    layout_id: IdStr = Field(min_length=1)
    photos: list[Photo] = Field(min_length=1)


class TextField(_Data):
    field_id: IdStr
    value: str = ""


class TextInputData(_Data):
    fields: list[TextField]


class OptionSelectData(_Data):
    selected_option: IdStr = Field(min_length=1)


class ItemSubstitutionData(_Data):
    substitute_item_id: IdStr = Field(min_length=1)


DATA_MODELS: dict[RuleType, type[_Data]] = {
    RuleType.PHOTO_UPLOAD: PhotoUploadData,
    RuleType.LAYOUT_PRESET: LayoutPresetData,
    RuleType.LAYOUT_WITH_PHOTOS: LayoutWithPhotosData,
    RuleType.TEXT_INPUT: TextInputData,
    RuleType.OPTION_SELECT: OptionSelectData,
    RuleType.ITEM_SUBSTITUTION: ItemSubstitutionData,
}


# ─── Parsing ─────────────────────────────────────────────────────

def parse_customization_data(
    title: str, rule_type: RuleType, data: Any,
) -> tuple[_Data | None, list[str]]:
    """Validate `data` against its rule type. Returns (model, errors)."""
    model_cls = DATA_MODELS[RuleType(rule_type)]
    if not isinstance(data, dict):
        return None, [f'"{title}": customization data must be an object']
    try:
        return model_cls.model_validate(data), []
    except ValidationError as e:
        return None, [
            f'"{title}": {".".join(str(loc) for loc in err["loc"]) or "data"} '
            f'{err["msg"].lower()}'
            for err in e.errors()
        ]


# ─── Content checks against available_options ────────────────────

def _option_list(options: Any, key: str) -> list | None:
    """options[key] when options is a dict, options itself when it is a list."""
    if isinstance(options, dict):
        value = options.get(key)
        return value if isinstance(value, list) else None
    if isinstance(options, list) and key == "options":
        return options
    return None


def _option_ids(entries: list, *keys: str) -> set[str]:
    ids: set[str] = set()
    for entry in entries:
        if isinstance(entry, dict):
            ids.update(str(entry[k]) for k in keys if entry.get(k) is not None)
        elif entry is not None:
            ids.add(str(entry))
    return ids


def check_text_fields(title: str, data: TextInputData, options: Any) -> list[str]:
    configured = _option_list(options, "fields") or []
    provided = {f.field_id: f.value for f in data.fields}
    errors = []
    for field in configured:
        if not isinstance(field, dict) or field.get("id") is None:
            continue
        label = field.get("label") or field["id"]
        value = provided.get(str(field["id"]))
        if field.get("required") and not (value or "").strip():
            errors.append(f'"{title}": field "{label}" is required')
        max_length = field.get("max_length")
        if max_length and value and len(value) > max_length:
            errors.append(
                f'"{title}": field "{label}" exceeds {max_length} characters',
            )
    return errors


def check_selected_option(
    title: str, data: OptionSelectData, options: Any,
) -> list[str]:
    entries = _option_list(options, "options")
    if entries is None:
        return []
    if data.selected_option not in _option_ids(entries, "id", "label", "value"):
        return [f'"{title}": option "{data.selected_option}" is not available']
    return []


def check_layout(title: str, layout_id: str, options: Any) -> list[str]:
    entries = _option_list(options, "layouts")
    if entries is None:
        return []
    if layout_id not in _option_ids(entries, "id"):
        return [f'"{title}": layout "{layout_id}" is not available']
    return []


def check_substitute(
    title: str, data: ItemSubstitutionData, options: Any,
) -> list[str]:
    entries = _option_list(options, "items")
    if entries is None:
        return []
    if data.substitute_item_id not in _option_ids(entries, "id", "item_id"):
        return [
            f'"{title}": item "{data.substitute_item_id}" cannot be used as a substitute',
        ]
    return []


def check_content(
    title: str, rule_type: RuleType, parsed: _Data, options: Any,
) -> list[str]:
    if rule_type == RuleType.TEXT_INPUT:
        return check_text_fields(title, parsed, options)
    if rule_type == RuleType.OPTION_SELECT:
        return check_selected_option(title, parsed, options)
    if rule_type in (RuleType.LAYOUT_PRESET, RuleType.LAYOUT_WITH_PHOTOS):
        return check_layout(title, parsed.layout_id, options)
    if rule_type == RuleType.ITEM_SUBSTITUTION:
        return check_substitute(title, parsed, options)
    return []


def validate_customization_data(
    title: str, rule_type: RuleType, data: Any, options: Any = None,
) -> list[str]:
    """Shape check, then content check when the shape is valid."""
    parsed, errors = parse_customization_data(title, rule_type, data)
    if parsed is None:
        return errors
    return check_content(title, RuleType(rule_type), parsed, options)
