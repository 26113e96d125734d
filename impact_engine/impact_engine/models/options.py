"""Display options controlling which report sub-sections render."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Option key -> OutputOptions attribute.  Order is the documented key order.
OPTION_KEYS: dict[str, str] = {
    "direct_column_count": "show_direct_column_count",
    "indirect_column_count": "show_indirect_column_count",
    "direct_asset_count": "show_direct_asset_count",
    "indirect_asset_count": "show_indirect_asset_count",
    "direct_column_list": "show_direct_column_list",
    "indirect_column_list": "show_indirect_column_list",
    "direct_asset_list": "show_direct_asset_list",
    "indirect_asset_list": "show_indirect_asset_list",
    "yml_column_changes": "show_yml_column_changes",
}


class OutputOptions(BaseModel):
    """Boolean flags for each optional report sub-section.

    Defaults to showing everything.  Use :meth:`from_keys` to derive the
    flags from a comma-separated key string.
    """

    model_config = ConfigDict(frozen=True)

    show_direct_column_count: bool = True
    show_indirect_column_count: bool = True
    show_direct_asset_count: bool = True
    show_indirect_asset_count: bool = True
    show_direct_column_list: bool = True
    show_indirect_column_list: bool = True
    show_direct_asset_list: bool = True
    show_indirect_asset_list: bool = True
    show_yml_column_changes: bool = True

    @classmethod
    def from_keys(cls, raw: object) -> OutputOptions:
        """Parse a comma-separated option-key string.

        An absent, empty, or non-string value enables every section, and
        so does a string with no recognised key in it.  Otherwise only the
        recognised keys present are enabled; keys are trimmed and compared
        case-insensitively.
        """
        if not raw or not isinstance(raw, str):
            return cls()
        keys = {key.strip().lower() for key in raw.split(",")}
        if keys.isdisjoint(OPTION_KEYS):
            return cls()
        return cls(**{attr: key in keys for key, attr in OPTION_KEYS.items()})

    @property
    def asset_section_enabled(self) -> bool:
        return (
            self.show_direct_asset_count
            or self.show_indirect_asset_count
            or self.show_direct_asset_list
            or self.show_indirect_asset_list
        )

    @property
    def column_section_enabled(self) -> bool:
        return (
            self.show_direct_column_count
            or self.show_indirect_column_count
            or self.show_direct_column_list
            or self.show_indirect_column_list
        )

    def enabled_keys(self) -> list[str]:
        """Option keys whose flag is on, in documented key order."""
        return [key for key, attr in OPTION_KEYS.items() if getattr(self, attr)]


def raw_option_keys(raw: str | None) -> list[str]:
    """Split the raw option string as supplied, for the report metadata block."""
    if not raw:
        return []
    return [key.strip() for key in raw.split(",")]
